"""Sync error taxonomy"""

from typing import Optional


class SyncError(Exception):
    """Base class for all sync failures."""


class TransportError(SyncError):
    """A collaborator (Redmine, Trello) could not be reached or answered with an error.

    Fatal for the run: the cursor is not advanced.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedDataError(SyncError):
    """A fetched record is missing a required field."""

    def __init__(self, message: str, remote_id: Optional[str] = None):
        super().__init__(message)
        self.remote_id = remote_id


class ReconciliationError(SyncError):
    """Creating or commenting on a card failed for one staging record."""

    def __init__(self, message: str, remote_id: str, destination: str):
        super().__init__(message)
        self.remote_id = remote_id
        self.destination = destination


class CursorError(SyncError):
    """The sync cursor could not be read or written."""


class SyncInProgressError(SyncError):
    """Another run currently holds the sync lock."""
