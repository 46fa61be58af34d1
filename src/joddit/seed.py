"""First-run default notes, read from the bundled YAML file."""

from __future__ import annotations

from collections.abc import Callable
from importlib import resources
from typing import Any

import yaml

from joddit.note import UNCATEGORIZED, Note, new_note_id, now_ms

_DAY_MS = 86_400_000


def parse_seed(text: str, clock: Callable[[], int] = now_ms) -> list[Note]:
    """Turn a YAML list of note entries into unsynced, unowned notes."""
    entries: list[dict[str, Any]] = yaml.safe_load(text) or []
    now = clock()
    notes = []
    for entry in entries:
        stamp = now - int(float(entry.get("age_days", 0)) * _DAY_MS)
        notes.append(
            Note(
                id=new_note_id(),
                title=entry.get("title", ""),
                content=entry.get("content", ""),
                created_at=stamp,
                updated_at=stamp,
                is_pinned=bool(entry.get("pinned", False)),
                category=entry.get("category") or UNCATEGORIZED,
            )
        )
    return notes


def load_default_notes(clock: Callable[[], int] = now_ms) -> list[Note]:
    text = resources.files("joddit").joinpath("data/default_notes.yaml").read_text(encoding="utf-8")
    return parse_seed(text, clock)
