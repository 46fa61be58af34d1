"""Shared fixtures for the sync-core tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from joddit.exceptions import RemoteStoreError
from joddit.note import Note
from joddit.sync.duckdb_remote import DuckDBRemoteStore
from joddit.sync.local import MemoryStore


class FailingRemote:
    """Remote store that is unreachable for every call."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def fetch(self, user_id: str, credential: str | None = None) -> list[Note]:
        self.calls.append("fetch")
        return []

    def upsert(self, user_id: str, note: Note, credential: str | None = None) -> None:
        self.calls.append("upsert")
        raise RemoteStoreError("network unreachable")

    def soft_delete(self, user_id: str, note_id: str, credential: str | None = None) -> None:
        self.calls.append("soft_delete")
        raise RemoteStoreError("network unreachable")


class Clock:
    """Deterministic millisecond clock advancing by one step per call."""

    def __init__(self, start: int = 1_000, step: int = 10) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture()
def local() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def remote() -> Iterator[DuckDBRemoteStore]:
    store = DuckDBRemoteStore(":memory:")
    yield store
    store.close()


@pytest.fixture()
def failing_remote() -> FailingRemote:
    return FailingRemote()


@pytest.fixture()
def clock() -> Clock:
    return Clock()


def _make_note(note_id: str = "n1", **fields) -> Note:
    fields.setdefault("title", "A")
    fields.setdefault("content", "x")
    fields.setdefault("created_at", fields.get("updated_at", 100))
    fields.setdefault("updated_at", 100)
    return Note(id=note_id, **fields)


@pytest.fixture()
def make_note():
    """Factory for notes with sensible defaults (``updated_at=100``)."""
    return _make_note
