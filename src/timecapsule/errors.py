"""Failure taxonomy for the capsule registry.

Every failure is a precondition violation raised before any state is
touched, so a failed operation never leaves a partial write behind and
is always safe for the caller to retry.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Classification of rejected operations."""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    INVALID_ARGUMENT = "invalid_argument"
    TIMING_VIOLATION = "timing_violation"
    ENGINE_PAUSED = "engine_paused"


class CapsuleError(Exception):
    """Base class for every rejected registry operation."""
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PermissionDenied(CapsuleError):
    """Caller is not the administrator, or not the capsule owner."""
    kind = ErrorKind.PERMISSION_DENIED


class NotFound(CapsuleError):
    """Capsule id outside the assigned range."""
    kind = ErrorKind.NOT_FOUND


class InvalidState(CapsuleError):
    """Capsule withdrawn, or engine already in the requested pause state."""
    kind = ErrorKind.INVALID_STATE


class InvalidArgument(CapsuleError):
    """Empty fingerprint, label too long, or malformed date components."""
    kind = ErrorKind.INVALID_ARGUMENT


class TimingViolation(CapsuleError):
    """Unlock time out of range, or an operation on the wrong side of it."""
    kind = ErrorKind.TIMING_VIOLATION


class EnginePaused(CapsuleError):
    """Gated operation attempted while the engine is paused."""
    kind = ErrorKind.ENGINE_PAUSED
