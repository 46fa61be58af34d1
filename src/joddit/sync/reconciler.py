"""Local/remote note reconciliation.

One pass, for a given account:

1. Snapshot the local notes and re-own any whose ``user_id`` differs from the
   active account (they become unsynced).
2. Push every unsynced note (tombstones included).  Failures leave the note
   unsynced and the pass carries on.
3. Pull the account's remote notes.
4. Under the local-store lock, re-read the local notes and merge: a note is
   flagged synced only if it was not edited since its push; for ids on both
   sides the higher ``updated_at`` wins (ties keep the local copy); remote-only
   notes are adopted unless they were purged locally meanwhile; local-only
   notes are kept; a synced note whose remote row is older goes back to
   unsynced.  Synced tombstones are purged.
5. Write back only if something changed, and return the visible notes.

Network calls happen outside the lock so foreground saves never wait on the
network.  Conflicts are decided by client-stamped ``updated_at``; clock skew
between devices is not compensated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from joddit.exceptions import RemoteStoreError
from joddit.note import Note
from joddit.sync.base import RemoteStore
from joddit.sync.local import LocalStore

logger = logging.getLogger(__name__)


def visible(notes: list[Note]) -> list[Note]:
    """Non-deleted notes, pinned first, then most recently updated."""
    live = [n for n in notes if not n.is_deleted]
    return sorted(live, key=lambda n: (not n.is_pinned, -n.updated_at))


@dataclass
class SyncReport:
    pushed: int = 0
    failed: int = 0
    pulled: int = 0
    purged: int = 0
    reowned: int = 0
    discarded: bool = False


class Reconciler:
    """Converges a :class:`LocalStore` with a :class:`RemoteStore` per account."""

    def __init__(self, local: LocalStore, remote: RemoteStore) -> None:
        self.local = local
        self.remote = remote
        self.last_report = SyncReport()

    def reconcile(
        self,
        user_id: str | None,
        credential: str | None = None,
        *,
        still_current: Callable[[], bool] | None = None,
    ) -> list[Note]:
        """Run one reconciliation pass for *user_id* and return the visible notes.

        *still_current* is consulted right before the merge is committed; when
        it returns False the identity has moved on and the pass is dropped.
        """
        if not user_id:
            return visible(self.local.read_all())

        report = SyncReport()
        self.last_report = report

        # Snapshot with ownership applied; nothing is persisted yet
        pending: list[Note] = []
        snapshot = self.local.read_all()
        known = {n.id for n in snapshot}
        for note in snapshot:
            if note.user_id != user_id:
                note = note.copy(user_id=user_id, is_synced=False)
            if not note.is_synced:
                pending.append(note)

        pushed: dict[str, int] = {}
        for note in pending:
            try:
                self.remote.upsert(user_id, note, credential)
            except RemoteStoreError as e:
                report.failed += 1
                logger.warning("Push of note %s deferred: %s", note.id, e)
                continue
            pushed[note.id] = note.updated_at
        report.pushed = len(pushed)

        remote_notes = {n.id: n for n in self.remote.fetch(user_id, credential)}

        with self.local.lock:
            if still_current is not None and not still_current():
                report.discarded = True
                logger.info("Identity changed during sync for %s; discarding merge", user_id)
                return visible(self.local.read_all())

            merged, changed = self._merge(
                self.local.read_all(), user_id, pushed, remote_notes, known, report
            )
            if changed:
                self.local.write_all(merged)

        logger.info(
            "Reconciled %s: pushed=%d failed=%d pulled=%d purged=%d reowned=%d",
            user_id,
            report.pushed,
            report.failed,
            report.pulled,
            report.purged,
            report.reowned,
        )
        return visible(merged)

    @staticmethod
    def _merge(
        current: list[Note],
        user_id: str,
        pushed: dict[str, int],
        remote_notes: dict[str, Note],
        known: set[str],
        report: SyncReport,
    ) -> tuple[list[Note], bool]:
        changed = False
        merged: list[Note] = []
        seen: set[str] = set()

        for note in current:
            seen.add(note.id)
            if note.user_id != user_id:
                note = note.copy(user_id=user_id, is_synced=False)
                report.reowned += 1
                changed = True
            if not note.is_synced and pushed.get(note.id) == note.updated_at:
                note = note.copy(is_synced=True)
                changed = True

            theirs = remote_notes.get(note.id)
            if theirs is not None and theirs.updated_at > note.updated_at:
                note = theirs.copy(user_id=user_id, is_synced=True)
                report.pulled += 1
                changed = True
            elif theirs is not None and theirs.updated_at < note.updated_at and note.is_synced:
                # An older push landed after this version; send it again
                note = note.copy(is_synced=False)
                changed = True

            if note.is_deleted and note.is_synced:
                report.purged += 1
                changed = True
                continue
            merged.append(note)

        for note_id, theirs in remote_notes.items():
            if note_id in seen:
                continue
            if note_id in known:
                # Purged locally while this pass was on the network
                continue
            merged.append(theirs.copy(user_id=user_id, is_synced=True))
            report.pulled += 1
            changed = True

        return merged, changed
