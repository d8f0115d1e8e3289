# ritual_tool/utils/file_utils.py
"""File operation utilities"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


def _is_within(path: Path, parents: List[Path]) -> bool:
    for parent in parents:
        if path == parent or parent in path.parents:
            return True
    return False


def iter_files(directory: Path, exclude_dirs: Optional[Iterable[Path]] = None) -> List[Path]:
    """
    List regular files below a directory

    Args:
        directory: Directory to scan
        exclude_dirs: Absolute directories whose subtrees are skipped

    Returns:
        Sorted list of absolute file paths
    """
    directory = Path(directory).resolve()
    excluded = [Path(p).resolve() for p in exclude_dirs or []]
    files = []

    for root, dirs, names in os.walk(directory):
        root_path = Path(root)
        # Prune excluded subtrees in place so os.walk never descends into them
        dirs[:] = sorted(d for d in dirs if not _is_within(root_path / d, excluded))

        for name in names:
            path = root_path / name
            if path.is_file():
                files.append(path)

    return sorted(files)


def copy_file(src: Path, dst: Path) -> None:
    """
    Copy a single file, overwriting the destination and keeping permission bits

    Args:
        src: Source file
        dst: Destination file
    """
    ensure_parent_dir(dst)
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)


def copy_tree(src: Path,
              dst: Path,
              exclude_dirs: Optional[Iterable[Path]] = None) -> List[str]:
    """
    Recursively copy every file from src into dst

    Existing files in dst are overwritten, files absent from src are left
    alone. Copy errors propagate unchanged.

    Args:
        src: Source directory
        dst: Destination directory
        exclude_dirs: Subtrees of src that are not copied

    Returns:
        Relative (posix) paths of the copied files
    """
    src = Path(src).resolve()
    dst = Path(dst)
    dst.mkdir(parents=True, exist_ok=True)

    copied = []
    for path in iter_files(src, exclude_dirs=exclude_dirs):
        relative = path.relative_to(src)
        copy_file(path, dst / relative)
        copied.append(relative.as_posix())

    logger.debug("Copied %d files from %s to %s", len(copied), src, dst)
    return copied


def prune_empty_parents(path: Path, stop: Path) -> int:
    """
    Remove the empty parent directories of a deleted file, up to (not including) stop

    Args:
        path: Path of a removed file
        stop: Directory where pruning ends

    Returns:
        Number of removed directories
    """
    stop = Path(stop).resolve()
    removed = 0
    parent = Path(path).resolve().parent

    while parent != stop and stop in parent.parents:
        if any(parent.iterdir()):
            break
        parent.rmdir()
        removed += 1
        parent = parent.parent

    return removed


def calculate_directory_size(directory: Path) -> int:
    """
    Calculate total size of directory

    Args:
        directory: Directory path

    Returns:
        Total size in bytes
    """
    total_size = 0

    for path in Path(directory).rglob('*'):
        if path.is_file():
            total_size += path.stat().st_size

    return total_size


def ensure_parent_dir(file_path: Path) -> Path:
    """
    Ensure parent directory exists

    Args:
        file_path: File path

    Returns:
        Parent directory path
    """
    parent = Path(file_path).parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent


def read_file_content(file_path: Path) -> Union[str, bytes]:
    """
    Read a file as UTF-8 text, or as raw bytes when it is not valid UTF-8

    Text is returned exactly as stored, without newline translation.
    """
    data = Path(file_path).read_bytes()
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return data


def read_files(base_dir: Path, relative_paths: Iterable[str]) -> dict:
    """
    Read files relative to base_dir into a name -> content map

    Missing files are left out of the map. Binary files map to bytes.
    """
    contents = {}
    for name in relative_paths:
        path = Path(base_dir) / name
        if path.is_file():
            contents[name] = read_file_content(path)
    return contents


def atomic_write(file_path: Path,
                 content: Union[str, bytes],
                 mode: str = 'w') -> None:
    """
    Write file atomically

    Args:
        file_path: Target file path
        content: Content to write
        mode: Write mode
    """
    file_path = Path(file_path)
    ensure_parent_dir(file_path)

    # Write to temporary file first
    temp_fd, temp_path = tempfile.mkstemp(dir=file_path.parent)

    try:
        with os.fdopen(temp_fd, mode) as f:
            f.write(content)

        # Atomic rename
        os.replace(temp_path, file_path)

    except Exception:
        # Clean up temp file on error
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
