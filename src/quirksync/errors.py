"""Exception hierarchy for a sync run.

Every exception here is fatal for the run: the runner logs it and maps it
to an error code on the failed ServiceResult. Anything that is not a
:class:`SyncError` is reported as ``UNEXPECTED_ERROR``.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for failures the runner knows how to classify."""

    code = "SYNC_ERROR"


class MissingCredentials(SyncError):
    """Writer user or password is an empty string."""

    code = "MISSING_CREDENTIALS"


class FetchError(SyncError):
    """Upstream read failed (transport, status, or non-JSON body)."""

    code = "FETCH_ERROR"

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class StorageError(SyncError):
    """A Remote Settings request failed."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, *, path: str, status: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.status = status


class StorageWriteError(StorageError):
    """A create, update, batch, or metadata patch was rejected."""

    code = "STORAGE_WRITE_ERROR"
