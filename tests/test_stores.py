"""Tests for state, history and checkpoint stores."""

from datetime import datetime

import pytest

from ritual_tool.api.exceptions import CheckpointNotFoundError, StateNotFoundError
from ritual_tool.constants import DeploymentStatus, MAX_HISTORY_ENTRIES
from ritual_tool.core import HistoryStore, StateStore
from ritual_tool.models import DeploymentRecord, ProjectState
from ritual_tool.models.state import DeploymentHistory
from ritual_tool.storage import CheckpointStore


def record(to_version, status=DeploymentStatus.SUCCESS, from_version="1.0.0"):
    return DeploymentRecord(from_version=from_version, to_version=to_version, status=status)


class TestStateStore:
    """Project state persistence."""

    def test_round_trip(self, tmp_path):
        store = StateStore(tmp_path)
        state = ProjectState(ritual_name="webapp", ritual_version="1.2.0",
                             installed_at=datetime(2024, 1, 2, 3, 4, 5))
        state.add_migration("1.1.0")
        state.add_migration("1.2.0")

        store.save(state)
        loaded = store.load()

        assert loaded.ritual_version == "1.2.0"
        assert loaded.applied_versions() == ["1.1.0", "1.2.0"]
        assert loaded.installed_at == datetime(2024, 1, 2, 3, 4, 5)

    def test_add_migration_once(self):
        state = ProjectState(ritual_name="webapp", ritual_version="1.0.0")
        state.add_migration("1.1.0")
        state.add_migration("1.1.0")
        assert state.applied_versions() == ["1.1.0"]
        assert state.is_migration_applied("1.1.0")

    def test_missing_state(self, tmp_path):
        store = StateStore(tmp_path)
        assert not store.exists()
        with pytest.raises(StateNotFoundError):
            store.load()

    def test_protected_patterns_merged(self, tmp_path):
        store = StateStore(tmp_path)
        store.save_protected_patterns(["*.env", "config/local.yaml"])
        (store.protected_path).write_text(
            store.protected_path.read_text() + "\n# comment\n\nsecrets/*\n"
        )
        state = ProjectState(ritual_name="webapp", ritual_version="1.0.0", protected_files=["*.env", "db.sqlite"])

        assert store.protected_patterns(state) == ["*.env", "db.sqlite", "config/local.yaml", "secrets/*"]

    def test_no_protected_file(self, tmp_path):
        assert StateStore(tmp_path).load_protected_patterns() == []


class TestHistoryStore:
    """Capped update history."""

    def test_empty_when_missing(self, tmp_path):
        assert len(HistoryStore(tmp_path).load()) == 0

    def test_append_persists(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.append(record("1.1.0"))
        store.append(record("1.2.0", DeploymentStatus.ROLLBACK))

        history = store.load()

        assert [r.to_version for r in history.latest()] == ["1.2.0", "1.1.0"]
        assert history.latest_successful().to_version == "1.1.0"
        assert [r.to_version for r in history.rollbacks()] == ["1.2.0"]

    def test_cap_evicts_oldest(self):
        history = DeploymentHistory()
        for patch in range(MAX_HISTORY_ENTRIES + 5):
            history.add(record(f"1.0.{patch}"))

        assert len(history) == MAX_HISTORY_ENTRIES
        assert history.deployments[0].to_version == "1.0.5"
        assert history.latest(1)[0].to_version == f"1.0.{MAX_HISTORY_ENTRIES + 4}"

    def test_cap_survives_reload(self, tmp_path):
        store = HistoryStore(tmp_path)
        history = DeploymentHistory()
        for patch in range(MAX_HISTORY_ENTRIES):
            history.add(record(f"1.0.{patch}"))
        store.save(history)

        store.append(record("2.0.0"))

        reloaded = store.load()
        assert len(reloaded) == MAX_HISTORY_ENTRIES
        assert reloaded.deployments[0].to_version == "1.0.1"

    def test_failures(self):
        history = DeploymentHistory()
        history.add(record("1.1.0", DeploymentStatus.FAILURE))
        history.add(record("1.1.0"))
        assert len(history.failures()) == 1


class TestCheckpointStore:
    """State-only checkpoints."""

    def test_create_and_get(self, project_dir):
        store = CheckpointStore(project_dir)
        state = StateStore(project_dir).load().to_dict()

        checkpoint = store.create_checkpoint("before experiment", state)

        loaded = store.get_checkpoint(checkpoint.id)
        assert loaded.label == "before experiment"
        assert loaded.state["ritual_version"] == "1.0.0"
        assert " " not in checkpoint.id

    def test_lookup_by_label(self, project_dir):
        store = CheckpointStore(project_dir)
        store.create_checkpoint("first", {})
        second = store.create_checkpoint("second", {})

        assert store.get_checkpoint_by_label("second").id == second.id
        assert store.find_checkpoint("second").id == second.id
        assert store.find_checkpoint(second.id).id == second.id

    def test_not_found(self, project_dir):
        store = CheckpointStore(project_dir)
        with pytest.raises(CheckpointNotFoundError):
            store.get_checkpoint("missing")
        with pytest.raises(CheckpointNotFoundError):
            store.find_checkpoint("missing")
        with pytest.raises(CheckpointNotFoundError):
            store.delete_checkpoint("missing")

    def test_auto_prune(self, project_dir):
        store = CheckpointStore(project_dir, max_checkpoints=3)
        created = [store.create_checkpoint(f"cp{i}", {}) for i in range(5)]

        remaining = store.list_checkpoints()

        assert [c.id for c in remaining] == [c.id for c in reversed(created)][:3]

    def test_restore_writes_state(self, project_dir):
        state_store = StateStore(project_dir)
        store = CheckpointStore(project_dir, state_store=state_store)
        checkpoint = store.create_checkpoint("v1", state_store.load().to_dict())

        state = state_store.load()
        state.ritual_version = "9.9.9"
        state_store.save(state)

        store.restore_checkpoint(checkpoint.id)

        assert state_store.load().ritual_version == "1.0.0"

    def test_delete(self, project_dir):
        store = CheckpointStore(project_dir)
        checkpoint = store.create_checkpoint("gone", {})
        store.delete_checkpoint(checkpoint.id)
        assert store.list_checkpoints() == []

    def test_unreadable_checkpoint_skipped(self, project_dir):
        store = CheckpointStore(project_dir)
        kept = store.create_checkpoint("ok", {})
        (store.checkpoints_dir / "broken.json").write_text("{")

        assert [c.id for c in store.list_checkpoints()] == [kept.id]
