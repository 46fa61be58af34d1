"""Protocols the sync core depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from joddit.note import Note


@runtime_checkable
class RemoteStore(Protocol):
    """Per-account note persistence reachable over the network.

    Ownership and credential travel with every call; implementations keep no
    session state, so one instance serves guest, signed-in and switched
    accounts alike.
    """

    def fetch(self, user_id: str, credential: str | None = None) -> list[Note]:
        """Return non-deleted notes owned by *user_id*, newest first.

        Never raises: any failure yields ``[]``.
        """
        ...

    def upsert(self, user_id: str, note: Note, credential: str | None = None) -> None:
        """Insert or update *note* by id. Raises ``RemoteStoreError`` on failure."""
        ...

    def soft_delete(self, user_id: str, note_id: str, credential: str | None = None) -> None:
        """Flag the remote row deleted. Raises ``RemoteStoreError`` on failure."""
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Supplies the signed-in account; either value may change between calls."""

    def current_user_id(self) -> str | None:
        ...

    def current_credential(self) -> str | None:
        ...


@dataclass
class StaticIdentity:
    """Mutable in-process identity (guest when ``user_id`` is ``None``)."""

    user_id: str | None = None
    credential: str | None = None

    def current_user_id(self) -> str | None:
        return self.user_id

    def current_credential(self) -> str | None:
        return self.credential

    def sign_in(self, user_id: str, credential: str | None = None) -> None:
        self.user_id = user_id
        self.credential = credential

    def sign_out(self) -> None:
        self.user_id = None
        self.credential = None
