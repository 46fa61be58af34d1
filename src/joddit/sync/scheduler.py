"""Periodic background reconciliation."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from joddit.sync.base import IdentityProvider

if TYPE_CHECKING:
    from joddit.service import NoteService

logger = logging.getLogger(__name__)

_UNSET = object()


class SyncScheduler:
    """Ticks every *interval* seconds, re-reading identity on each tick."""

    def __init__(
        self,
        service: "NoteService",
        identity: IdentityProvider,
        interval: float = 5.0,
    ) -> None:
        self.service = service
        self.identity = identity
        #: Seconds between ticks
        self.interval = interval
        self._last_user: object = _UNSET
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def tick(self) -> None:
        """Reconcile for the current identity; flags sign-in/out/switches."""
        user_id = self.identity.current_user_id()
        credential = self.identity.current_credential()
        with self._lock:
            changed = user_id != self._last_user
            self._last_user = user_id
        if changed:
            self.service.identity_changed(user_id, credential)
        elif user_id:
            self.service.request_sync(user_id, credential)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Sync tick failed")

    def start(self) -> None:
        """Tick once immediately, then keep ticking on a daemon thread."""
        with self._lock:
            if self._thread is not None:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="joddit-poll", daemon=True)
            self._thread.start()
        self.tick()

    def stop(self) -> None:
        self._stop.set()
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()

    def __enter__(self) -> "SyncScheduler":
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        self.stop()
