"""Exception classes shared by the sync core and its adapters."""


class JodditError(Exception):
    """Base exception for all joddit errors."""

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class RemoteStoreError(JodditError):
    """Raised when a remote write (upsert / soft-delete) does not land."""


class TranscriptionError(JodditError):
    """Raised when the transcription provider is unconfigured or fails."""
