"""Joddit offline-first note library."""

from joddit.note import UNCATEGORIZED, Note, Segment
from joddit.service import NoteService, create_service
from joddit.sync.base import IdentityProvider, RemoteStore, StaticIdentity
from joddit.sync.local import JsonFileStore, LocalStore, MemoryStore
from joddit.sync.reconciler import Reconciler
from joddit.sync.scheduler import SyncScheduler

__all__ = [
    "Note",
    "Segment",
    "UNCATEGORIZED",
    "NoteService",
    "create_service",
    "IdentityProvider",
    "RemoteStore",
    "StaticIdentity",
    "LocalStore",
    "JsonFileStore",
    "MemoryStore",
    "Reconciler",
    "SyncScheduler",
]
