# dropshare/services/errors.py
from typing import List, Optional


class FileStoreError(Exception):
    """Base class for errors raised by the storage services."""


class ValidationError(FileStoreError):
    """Caller input was refused (empty upload, every file blocked, ...)."""

    def __init__(self, message: str, rejected: Optional[List[str]] = None):
        super().__init__(message)
        self.rejected = list(rejected or [])


class NotFound(FileStoreError):
    pass


class StorageError(FileStoreError):
    """Disk or metadata I/O failed."""
