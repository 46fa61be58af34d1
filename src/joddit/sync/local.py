"""On-device note persistence.

The whole note collection lives in one logical slot, addressed by a fixed
key, holding a JSON array.  Stores only expose "read everything" and
"write everything"; callers that read-modify-write hold :attr:`LocalStore.lock`
for the whole span.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from joddit.note import Note

logger = logging.getLogger(__name__)

NOTES_KEY = "@joddit_notes"


def decode_notes(payload: str | None) -> list[Note]:
    """Parse a persisted slot; corrupt payloads or records are dropped."""
    if not payload:
        return []
    try:
        raw: Any = json.loads(payload)
    except ValueError:
        logger.error("Discarding unparsable notes payload (%d bytes)", len(payload))
        return []
    if not isinstance(raw, list):
        logger.error("Discarding notes payload: expected a list, got %s", type(raw).__name__)
        return []

    notes: list[Note] = []
    seen: set[str] = set()
    for item in raw:
        try:
            note = Note.from_dict(item)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Dropping malformed note record: %s", e)
            continue
        if note.id in seen:
            logger.warning("Dropping duplicate note record %s", note.id)
            continue
        seen.add(note.id)
        notes.append(note)
    return notes


def encode_notes(notes: list[Note]) -> str:
    return json.dumps([n.to_dict() for n in notes], ensure_ascii=False)


class LocalStore:
    """Base class: whole-set reads and writes over a single slot."""

    def __init__(self) -> None:
        #: Guards every read-all → write-all span in this process
        self.lock = threading.RLock()

    def _load(self) -> str | None:
        raise NotImplementedError

    def _save(self, payload: str) -> None:
        raise NotImplementedError

    def read_all(self) -> list[Note]:
        """Return every stored note (tombstones included); ``[]`` on any failure."""
        with self.lock:
            try:
                payload = self._load()
            except OSError:
                logger.exception("Local store unavailable; treating as empty")
                return []
            return decode_notes(payload)

    def write_all(self, notes: list[Note]) -> None:
        """Replace the stored collection; on failure the prior state is kept."""
        with self.lock:
            try:
                self._save(encode_notes(notes))
            except OSError:
                logger.exception("Local store write failed; keeping previous notes")


class JsonFileStore(LocalStore):
    """Slot backed by ``<data_dir>/<key>.json``, replaced atomically on write."""

    def __init__(self, data_dir: Path | str, key: str = NOTES_KEY) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)
        self.key = key
        self.path = self.data_dir / f"{key.lstrip('@')}.json"

    def _load(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def _save(self, payload: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=".notes-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class MemoryStore(LocalStore):
    """Process-local slot, mainly for tests and guest previews."""

    def __init__(self, payload: str | None = None) -> None:
        super().__init__()
        self.payload = payload

    def _load(self) -> str | None:
        return self.payload

    def _save(self, payload: str) -> None:
        self.payload = payload
