"""Exception hierarchy for the storage adapter layer."""

from typing import Optional


class StorageError(Exception):
    """Base class for every error raised by smt_storage."""


class FormatError(StorageError):
    """Raised when stored bytes cannot be decoded.

    Carries the byte offset where decoding stopped so corrupted records can
    be told apart from absent ones.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class BackendError(StorageError):
    """Raised when the underlying engine fails to open, read or write."""


class MissingKeyError(StorageError, KeyError):
    """Raised when a take-style removal targets a key that is not stored."""

    def __init__(self, key: bytes):
        super().__init__(f"key {bytes(key).hex()} is not present")
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class UnsupportedOperationError(StorageError, NotImplementedError):
    """Raised by hasher operations that this adapter never supports."""


class HasherConsumedError(StorageError):
    """Raised when a finalized hasher is used again."""
