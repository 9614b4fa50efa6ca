"""File reading adapters and collection loading.

The service reads its three collections through a ``FileReader`` so that
tests and embedders can supply data without touching the filesystem.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Protocol, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from zen_search.exceptions import LoadError


logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class FileReader(Protocol):
    """Capability to read a whole file as bytes."""

    def read_bytes(self, path: Path) -> bytes:  # pragma: no cover - interface definition
        ...


class LocalFileReader:
    """Reads files from the local filesystem."""

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()


class InMemoryFileReader:
    """Serves file contents from a mapping of path to bytes.

    Missing paths raise ``FileNotFoundError`` like the filesystem does. Every
    requested path is recorded in ``reads``.
    """

    def __init__(self, files: Mapping[str | Path, bytes] | None = None) -> None:
        self.files = {Path(path): data for path, data in (files or {}).items()}
        self.reads: list[Path] = []

    def read_bytes(self, path: Path) -> bytes:
        path = Path(path)
        self.reads.append(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(f"No such file: '{path}'") from None


def load_collection(reader: FileReader, path: Path, model: type[_M]) -> list[_M]:
    """Read a JSON array from ``path`` and validate each element as ``model``.

    Raises:
        LoadError: If the file cannot be read, is not valid JSON, is not an
            array, or an element fails validation.
    """

    try:
        payload = reader.read_bytes(path)
    except OSError as exc:
        raise LoadError(f"Failed to read {path}: {exc}") from exc

    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise LoadError(f"Malformed JSON in {path}: {exc}") from exc

    if not isinstance(data, list):
        raise LoadError(f"Expected a JSON array in {path}, got {type(data).__name__}")

    try:
        records = TypeAdapter(list[model]).validate_python(data)
    except ValidationError as exc:
        raise LoadError(f"Invalid {model.__name__} record in {path}: {exc}") from exc

    logger.debug("Loaded %d %s records from %s", len(records), model.__name__, path)
    return records
