"""Error types raised by the circulation core.

Every error carries an ``ErrorKind`` so the transport layer can translate it
into a status code without inspecting messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    CAPACITY = "capacity"
    LIMIT = "limit"
    EXHAUSTED = "exhausted"


class LibraryError(Exception):
    """Base class for recoverable library errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "kind": self.kind.value}


class ValidationError(LibraryError):
    kind = ErrorKind.VALIDATION


class NotFoundError(LibraryError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(LibraryError):
    kind = ErrorKind.CONFLICT


class CapacityError(LibraryError):
    kind = ErrorKind.CAPACITY


class LimitError(LibraryError):
    kind = ErrorKind.LIMIT


class ExhaustedError(LibraryError):
    """No unused checkout ID is left in the keyspace."""

    kind = ErrorKind.EXHAUSTED


class StoreError(Exception):
    """The document file exists but cannot be read as a library document."""
