"""Core Note and Segment dataclasses."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

#: Category given to notes the user has not filed anywhere yet.
UNCATEGORIZED = "Recent"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_note_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Segment:
    """One speaker-tagged slice of a transcript."""

    speaker_id: str
    text: str
    #: Offset into the recording, in seconds
    timestamp: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"speakerId": self.speaker_id, "text": self.text, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Segment":
        return cls(
            speaker_id=str(data.get("speakerId", data.get("speaker_id", ""))),
            text=str(data.get("text", "")),
            timestamp=float(data.get("timestamp") or 0.0),
        )


@dataclass
class Note:
    """A single note, as held on-device and mirrored to the remote store."""

    id: str
    title: str = ""
    content: str = ""
    segments: list[Segment] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    is_pinned: bool = False
    category: str = UNCATEGORIZED
    #: Owning account; ``None`` for notes created as a guest
    user_id: str | None = None
    is_synced: bool = False
    is_deleted: bool = False

    def copy(self, **changes: Any) -> "Note":
        """Return a copy with *changes* applied (segments list is not shared)."""
        changes.setdefault("segments", list(self.segments))
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Local JSON shape
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "segments": [s.to_dict() for s in self.segments],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "isPinned": self.is_pinned,
            "category": self.category,
            "isSynced": self.is_synced,
            "isDeleted": self.is_deleted,
        }
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        """Build a note from its persisted form.

        Raises ``KeyError``/``TypeError``/``ValueError`` for records that are
        not notes; callers loading a whole collection drop such records.
        """
        note_id = data["id"]
        if not isinstance(note_id, str) or not note_id:
            raise ValueError(f"invalid note id: {note_id!r}")
        return cls(
            id=note_id,
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            segments=[Segment.from_dict(s) for s in data.get("segments") or []],
            created_at=int(data.get("createdAt") or 0),
            updated_at=int(data.get("updatedAt") or 0),
            is_pinned=bool(data.get("isPinned", False)),
            category=str(data.get("category") or UNCATEGORIZED),
            user_id=data.get("userId"),
            is_synced=bool(data.get("isSynced", False)),
            is_deleted=bool(data.get("isDeleted", False)),
        )

    # ------------------------------------------------------------------
    # Remote row shape
    # ------------------------------------------------------------------

    def to_row(self, user_id: str) -> dict[str, Any]:
        """Column values for the remote ``notes`` table, owned by *user_id*."""
        return {
            "id": self.id,
            "user_id": user_id,
            "title": self.title,
            "content": self.content,
            "segments": json.dumps([s.to_dict() for s in self.segments]),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "is_pinned": self.is_pinned,
            "category": self.category,
            "is_deleted": self.is_deleted,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Note":
        """Map a remote row into a note flagged as synced."""
        segments = row.get("segments") or []
        if isinstance(segments, str):
            segments = json.loads(segments) if segments else []
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            content=row.get("content") or "",
            segments=[Segment.from_dict(s) for s in segments],
            created_at=int(row.get("created_at") or 0),
            updated_at=int(row.get("updated_at") or 0),
            is_pinned=bool(row.get("is_pinned", False)),
            category=row.get("category") or UNCATEGORIZED,
            user_id=row.get("user_id"),
            is_synced=True,
            is_deleted=bool(row.get("is_deleted", False)),
        )
