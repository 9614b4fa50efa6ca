"""Shared test fixtures and configuration."""

import logging
import os
from pathlib import Path
import sys

import orjson
import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures.zendesk_corpus import ORGANIZATIONS, TICKETS, USERS
from zen_search.adapters.file_reader import InMemoryFileReader
from zen_search.config import Settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop ZEN_* variables and run each test away from any stray .env file."""
    for key in list(os.environ):
        if key.upper().startswith("ZEN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drop handlers installed by configure_logging; pytest re-adds its own per phase."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def corpus_files() -> dict[str, bytes]:
    return {
        "users.json": orjson.dumps(USERS),
        "organizations.json": orjson.dumps(ORGANIZATIONS),
        "tickets.json": orjson.dumps(TICKETS),
    }


@pytest.fixture
def data_dir(tmp_path, corpus_files) -> Path:
    """Write the corpus to disk and return its directory."""
    directory = tmp_path / "data"
    directory.mkdir()
    for name, payload in corpus_files.items():
        (directory / name).write_bytes(payload)
    return directory


@pytest.fixture
def settings() -> Settings:
    return Settings(data_dir=Path("corpus"))


@pytest.fixture
def memory_reader(settings, corpus_files) -> InMemoryFileReader:
    return InMemoryFileReader({settings.data_dir / name: payload for name, payload in corpus_files.items()})
