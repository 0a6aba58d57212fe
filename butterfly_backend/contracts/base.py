"""
Base Contracts and Shared Types

These are the foundational types used across all layers: the error
taxonomy, record kinds, and identifier generation.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Errors are raised as typed exceptions and translated only at the HTTP boundary
- No layer constructs error messages for NotFound by hand
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Container, Optional
import secrets
import string


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    Every failure the service can report is enumerated here.
    """
    # Lookup errors
    RECORD_NOT_FOUND = auto()

    # Request errors
    INVALID_REQUEST_BODY = auto()
    INVALID_RATING = auto()

    # Storage errors
    COMMIT_FAILED = auto()
    LOAD_FAILED = auto()


class RecordKind(Enum):
    """The two top-level collections of the record document."""
    BUTTERFLY = "Butterfly"
    USER = "User"

    @property
    def collection(self) -> str:
        return "butterflies" if self is RecordKind.BUTTERFLY else "users"


class ButterflyServiceError(Exception):
    """Root of every error the service raises on purpose."""

    code: Optional[ErrorCode] = None

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFound(ButterflyServiceError):
    """A requested or referenced record is absent."""

    code = ErrorCode.RECORD_NOT_FOUND

    def __init__(self, kind: RecordKind, record_id: str):
        super().__init__(f"{kind.value} with id {record_id} does not exist")
        self.kind = kind
        self.record_id = record_id


class ValidationFailure(ButterflyServiceError):
    """Caller-supplied payload violates shape, type or range constraints."""

    code = ErrorCode.INVALID_REQUEST_BODY


class PersistenceFailure(ButterflyServiceError):
    """The record document could not be read or durably written."""

    code = ErrorCode.COMMIT_FAILED


# =============================================================================
# IDENTITY (Opaque, unique within a collection)
# =============================================================================

ID_ALPHABET = string.ascii_letters + string.digits + "_-"
ID_LENGTH = 10


class IdGenerator:
    """
    Produces short opaque identifiers.

    An id is guaranteed unique against the ids passed in as `taken`
    at call time. Collisions are retried up to `max_attempts` times.
    """

    def __init__(self, length: int = ID_LENGTH, max_attempts: int = 32):
        if length < 1:
            raise ValueError("id length must be positive")
        self._length = length
        self._max_attempts = max_attempts

    def generate(self, taken: Container[str] = ()) -> str:
        for _ in range(self._max_attempts):
            candidate = "".join(
                secrets.choice(ID_ALPHABET) for _ in range(self._length)
            )
            if candidate not in taken:
                return candidate
        raise RuntimeError(
            f"Could not generate a unique id after {self._max_attempts} attempts"
        )
