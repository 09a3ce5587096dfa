"""Error types raised by optimisers and their supporting types.

Catch :class:`OptimiserError` for any failure raised by this package, or one
of the concrete subclasses when the failure mode matters. The concrete
classes also derive from the closest built-in exception so callers that only
know about ``ValueError`` or ``LookupError`` keep working.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    UNKNOWN_OBSERVATION = "unknown_observation"
    IO_ERROR = "io_error"
    BUG = "bug"
    OTHER = "other"


class OptimiserError(Exception):
    """Base error for this package.

    Args:
        message: Human-readable error description.
        kind: Coarse classification of the failure.
    """

    def __init__(self, message: str, *, kind: ErrorKind = ErrorKind.OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class InvalidInputError(OptimiserError, ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.INVALID_INPUT)


class UnknownObservationError(OptimiserError, LookupError):
    """Raised when an optimiser is told about (or asked to forget) an
    observation it did not generate or is not waiting for."""

    def __init__(self, obs_id: Any, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Unknown observation: {obs_id}",
            kind=ErrorKind.UNKNOWN_OBSERVATION,
        )
        self.obs_id = obs_id


class OptimiserStateError(OptimiserError, RuntimeError):
    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.OTHER)
