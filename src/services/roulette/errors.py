"""
RouletteBot - Roulette Errors
=============================

Error kinds, user-facing messages, and the exception hierarchy
shared by the draw engine, stores, and coordinator.
"""

from enum import Enum
from typing import Dict, Optional


# =============================================================================
# Error Kinds
# =============================================================================

class ErrorKind(str, Enum):
    """Outcome kinds a draw or store operation can report."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    POOL_NOT_FOUND = "POOL_NOT_FOUND"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    TIMEOUT = "TIMEOUT"
    CONTENTION = "CONTENTION"


class Triage(str, Enum):
    """
    Severity of an error kind.

    - IMMEDIATE: the bot has a fatal problem
    - DELAYED: anomaly visible to users
    - MINOR: anomaly not visible to users
    - NOT_BAD: not caused by the bot (bad input, legitimate terminal states)
    """

    IMMEDIATE = "immediate"
    DELAYED = "delayed"
    MINOR = "minor"
    NOT_BAD = "not_bad"


ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.VALIDATION_ERROR: "The pool definition is invalid",
    ErrorKind.POOL_NOT_FOUND: "No such pool",
    ErrorKind.POOL_EXHAUSTED: "No eligible entries remain in this pool for you",
    ErrorKind.PERSISTENCE_FAILURE: "The draw could not be saved and did not happen",
    ErrorKind.TIMEOUT: "Storage did not answer in time, check your history before retrying",
    ErrorKind.CONTENTION: "Another draw is in progress, please try again",
}

ERROR_TRIAGE: Dict[ErrorKind, Triage] = {
    ErrorKind.VALIDATION_ERROR: Triage.NOT_BAD,
    ErrorKind.POOL_NOT_FOUND: Triage.NOT_BAD,
    ErrorKind.POOL_EXHAUSTED: Triage.NOT_BAD,
    ErrorKind.PERSISTENCE_FAILURE: Triage.IMMEDIATE,
    ErrorKind.TIMEOUT: Triage.DELAYED,
    ErrorKind.CONTENTION: Triage.MINOR,
}


# =============================================================================
# Exceptions
# =============================================================================

class RouletteError(Exception):
    """Base class for all roulette errors. Carries an ErrorKind."""

    kind: ErrorKind = ErrorKind.PERSISTENCE_FAILURE

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or ERROR_MESSAGES[self.kind])

    @property
    def triage(self) -> Triage:
        return ERROR_TRIAGE[self.kind]


class ValidationError(RouletteError):
    """Raised when a pool definition breaks an invariant."""

    kind = ErrorKind.VALIDATION_ERROR


class PoolNotFoundError(RouletteError):
    """Raised when no snapshot exists for a pool id."""

    kind = ErrorKind.POOL_NOT_FOUND

    def __init__(self, pool_id: str) -> None:
        self.pool_id = pool_id
        super().__init__(f"No such pool: {pool_id!r}")


class PersistenceFailure(RouletteError):
    """Raised when a storage read or write fails."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class DatabaseUnavailableError(PersistenceFailure):
    """Raised when the database is unhealthy and operations cannot proceed."""


class StorageTimeout(RouletteError):
    """Raised when a storage call exceeds its bounded wait. Outcome unknown."""

    kind = ErrorKind.TIMEOUT


class ContentionError(RouletteError):
    """Raised when serialization could not be obtained. Nothing was written."""

    kind = ErrorKind.CONTENTION


def message_for(kind: ErrorKind) -> str:
    """Get the user-facing message for an error kind."""
    return ERROR_MESSAGES.get(kind, "An error occurred")


__all__ = [
    "ErrorKind",
    "Triage",
    "ERROR_MESSAGES",
    "ERROR_TRIAGE",
    "RouletteError",
    "ValidationError",
    "PoolNotFoundError",
    "PersistenceFailure",
    "DatabaseUnavailableError",
    "StorageTimeout",
    "ContentionError",
    "message_for",
]
