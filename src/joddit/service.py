"""NoteService — the one entry point presentation code talks to.

Reads and writes always go to the local store first, synchronously; the
remote side is reached opportunistically (an immediate push after a save or
delete) and by background reconciliation.  No sync-core failure ever reaches
the caller: the worst case is a note that stays unsynced until a later pass.

Usage::

    service = NoteService(JsonFileStore(data_dir), NeonHttpStore(url))
    service.subscribe(lambda notes: render(notes))

    notes = service.get_notes(user_id)          # local view now, sync queued
    service.save_note(note, user_id, token)     # local write + push attempt
    service.delete_note(note.id, user_id, token)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import TYPE_CHECKING

from joddit.exceptions import RemoteStoreError, TranscriptionError
from joddit.note import UNCATEGORIZED, Note, new_note_id, now_ms
from joddit.seed import load_default_notes
from joddit.sync.base import RemoteStore
from joddit.sync.local import JsonFileStore, LocalStore
from joddit.sync.reconciler import Reconciler, visible
from joddit.transcription import format_transcript_with_speakers

if TYPE_CHECKING:
    from joddit.config import Settings
    from joddit.transcription import DeepgramTranscriber

logger = logging.getLogger(__name__)

Listener = Callable[[list[Note]], None]


class NoteService:
    """Local-first note façade with background reconciliation."""

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        *,
        reconciler: Reconciler | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.local = local
        self.remote = remote
        self.reconciler = reconciler or Reconciler(local, remote)
        self._clock = clock
        # A single worker serialises reconciliation runs
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="joddit-sync")
        self._state_lock = threading.Lock()
        self._queued: dict[str, Future] = {}
        self._credentials: dict[str, str | None] = {}
        self._active_user: str | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_notes(self, user_id: str | None = None, credential: str | None = None) -> list[Note]:
        """Return the local notes now; queue a reconciliation when signed in."""
        notes = visible(self.local.read_all())
        if user_id:
            self.request_sync(user_id, credential)
        return notes

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_note(
        self, note: Note, user_id: str | None = None, credential: str | None = None
    ) -> Note:
        """Persist *note* locally, then try to push it straight away."""
        with self.local.lock:
            notes = self.local.read_all()
            index = next((i for i, n in enumerate(notes) if n.id == note.id), None)
            owner = note.user_id
            stamp = self._clock()
            if index is not None:
                owner = notes[index].user_id
                stamp = max(stamp, notes[index].updated_at + 1)
            saved = note.copy(
                updated_at=stamp,
                created_at=note.created_at or stamp,
                user_id=user_id or owner,
                is_synced=False,
            )
            if index is None:
                notes.append(saved)
            else:
                notes[index] = saved
            self.local.write_all(notes)

        if user_id:
            self._push(saved, user_id, credential)
        return saved

    def delete_note(
        self, note_id: str, user_id: str | None = None, credential: str | None = None
    ) -> None:
        """Tombstone the note locally; purge it once the remote confirms."""
        with self.local.lock:
            notes = self.local.read_all()
            index = next((i for i, n in enumerate(notes) if n.id == note_id), None)
            if index is None:
                return
            current = notes[index]
            notes[index] = current.copy(
                is_deleted=True,
                is_synced=False,
                updated_at=max(self._clock(), current.updated_at + 1),
            )
            self.local.write_all(notes)

        if not user_id:
            return
        try:
            self.remote.soft_delete(user_id, note_id, credential)
        except RemoteStoreError as e:
            logger.warning("Remote delete of %s deferred: %s", note_id, e)
            return

        with self.local.lock:
            notes = self.local.read_all()
            remaining = [n for n in notes if not (n.id == note_id and n.is_deleted)]
            if len(remaining) != len(notes):
                self.local.write_all(remaining)

    def bulk_save_notes(
        self, notes: list[Note], user_id: str | None = None, credential: str | None = None
    ) -> None:
        """Seed the local store with *notes* (first-run content)."""
        with self.local.lock:
            seeded = self._write_seed(notes, user_id)
        if user_id:
            for note in seeded:
                self._push(note, user_id, credential)

    def seed_defaults(self, user_id: str | None = None, credential: str | None = None) -> bool:
        """Load the bundled default notes if the local store is empty."""
        with self.local.lock:
            if self.local.read_all():
                return False
            seeded = self._write_seed(load_default_notes(self._clock), user_id)
        if user_id:
            for note in seeded:
                self._push(note, user_id, credential)
        return True

    def _write_seed(self, notes: list[Note], user_id: str | None) -> list[Note]:
        seeded = [n.copy(user_id=user_id or n.user_id, is_synced=False) for n in notes]
        self.local.write_all(seeded)
        return seeded

    def create_voice_note(
        self,
        audio: bytes,
        transcriber: "DeepgramTranscriber",
        user_id: str | None = None,
        credential: str | None = None,
        *,
        duration: float | None = None,
    ) -> Note:
        """Transcribe *audio* into a new note; falls back to placeholder text."""
        try:
            result = transcriber.transcribe(audio)
            content = format_transcript_with_speakers(result.segments) or result.transcript
            segments = result.segments
        except TranscriptionError as e:
            logger.warning("Transcription failed, saving placeholder note: %s", e)
            content = _placeholder_text(duration)
            segments = []

        note = Note(
            id=new_note_id(),
            title="Voice Note",
            content=content,
            segments=segments,
            category=UNCATEGORIZED,
        )
        return self.save_note(note, user_id, credential)

    def _push(self, note: Note, user_id: str, credential: str | None) -> None:
        try:
            self.remote.upsert(user_id, note, credential)
        except RemoteStoreError as e:
            logger.warning("Push of note %s deferred: %s", note.id, e)
            return
        with self.local.lock:
            notes = self.local.read_all()
            for i, n in enumerate(notes):
                # Only flip the flag if nobody edited the note meanwhile
                if n.id == note.id and n.updated_at == note.updated_at and not n.is_synced:
                    notes[i] = n.copy(is_synced=True, user_id=user_id)
                    self.local.write_all(notes)
                    break

    # ------------------------------------------------------------------
    # Background reconciliation
    # ------------------------------------------------------------------

    def identity_changed(self, user_id: str | None, credential: str | None = None) -> None:
        """Record the new active account and, if signed in, reconcile for it."""
        with self._state_lock:
            self._active_user = user_id
        logger.info("Active identity is now %s", user_id or "guest")
        if user_id:
            self.request_sync(user_id, credential)

    def request_sync(self, user_id: str, credential: str | None = None) -> Future:
        """Queue a reconciliation for *user_id*; reuses a run that has not started."""
        with self._state_lock:
            self._active_user = user_id
            # A queued run picks up the newest credential when it starts
            self._credentials[user_id] = credential
            queued = self._queued.get(user_id)
            if queued is not None and not queued.running() and not queued.done():
                return queued
            future = self._executor.submit(self._run_sync, user_id)
            self._queued[user_id] = future
            return future

    def _run_sync(self, user_id: str) -> list[Note]:
        with self._state_lock:
            credential = self._credentials.get(user_id)
        try:
            notes = self.reconciler.reconcile(
                user_id, credential, still_current=lambda: self._is_active(user_id)
            )
        except Exception:
            logger.exception("Reconciliation for %s failed", user_id)
            return visible(self.local.read_all())
        if not self.reconciler.last_report.discarded:
            self._notify(notes)
        return notes

    def _is_active(self, user_id: str) -> bool:
        with self._state_lock:
            return self._active_user == user_id

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the converged notes after each reconciliation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, notes: list[Note]) -> None:
        for listener in list(self._listeners):
            try:
                listener(notes)
            except Exception:
                logger.exception("Note listener %r raised", listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "NoteService":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _placeholder_text(duration: float | None) -> str:
    lines = [f"Recording from {datetime.now():%Y-%m-%d %H:%M}"]
    if duration is not None:
        mins, secs = divmod(int(duration), 60)
        lines.append(f"Duration: {mins}:{secs:02d}")
    lines.append("Transcription failed.")
    return "\n\n".join(lines)


def create_service(settings: "Settings") -> NoteService:
    """Wire a service from :class:`~joddit.config.Settings`."""
    from joddit.sync.neon import NeonHttpStore

    return NoteService(
        JsonFileStore(settings.data_dir),
        NeonHttpStore(settings.database_url or None),
    )
