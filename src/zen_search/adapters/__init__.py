"""Adapters for external collaborators (file access)."""

from zen_search.adapters.file_reader import FileReader, InMemoryFileReader, LocalFileReader, load_collection


__all__ = [
    "FileReader",
    "InMemoryFileReader",
    "LocalFileReader",
    "load_collection",
]
