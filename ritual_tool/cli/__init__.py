"""Command line interface for ritual-tool"""
