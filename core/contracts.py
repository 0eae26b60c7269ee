# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Foundation - Core enums and tagged backend results
# PURPOSE: Shared enums and the Ok | NotFound | Error result type
# CREATED: 12 OCT 2026
# ============================================================================
"""
Base contracts for the messaging fabric.

Backend lookups (describe topic / describe queue) return a BackendResult
instead of raising, so the reconciler can branch on absence without using
exceptions for control flow:

    OK         resource exists, value holds the backend's attributes
    NOT_FOUND  resource absent, create it
    ERROR      anything else, raise it
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from core.errors import BackendError, NotFoundError


# ============================================================================
# ENUMS
# ============================================================================

class ResultKind(str, Enum):
    """Outcome of a backend lookup."""
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class BackendFamily(str, Enum):
    """Backend service families; each maps its own error codes."""
    NOTIFICATION = "sns"
    QUEUE = "sqs"


class HandlerFailurePolicy(str, Enum):
    """
    What the consume loop does when a handler raises.

    ISOLATE: log, leave the message for redelivery, continue the batch
    ABORT:   re-raise, abandoning the rest of the batch
    """
    ISOLATE = "isolate"
    ABORT = "abort"


class DecodeFailurePolicy(str, Enum):
    """
    What the consume loop does with a body it cannot decode.

    SKIP:   log and leave it. The reconciler sets no redrive policy, so
            the message returns after every lease until deleted or until
            an operator-configured redrive policy moves it aside
    DELETE: log and delete it
    """
    SKIP = "skip"
    DELETE = "delete"


# ============================================================================
# TAGGED RESULT
# ============================================================================

@dataclass(frozen=True)
class BackendResult:
    """Tagged result of a backend lookup."""

    kind: ResultKind
    value: Any = None
    error: Optional[BackendError] = None

    @classmethod
    def ok(cls, value: Any = None) -> "BackendResult":
        return cls(kind=ResultKind.OK, value=value)

    @classmethod
    def not_found(cls, error: Optional[BackendError] = None) -> "BackendResult":
        return cls(kind=ResultKind.NOT_FOUND, error=error)

    @classmethod
    def failed(cls, error: BackendError) -> "BackendResult":
        return cls(kind=ResultKind.ERROR, error=error)

    @property
    def is_ok(self) -> bool:
        return self.kind == ResultKind.OK

    @property
    def is_not_found(self) -> bool:
        return self.kind == ResultKind.NOT_FOUND

    def unwrap(self) -> Any:
        """
        Return the value of an OK result.

        Raises:
            NotFoundError: for NOT_FOUND results
            BackendError: the carried error, unchanged, for ERROR results
        """
        if self.kind == ResultKind.OK:
            return self.value
        if self.kind == ResultKind.NOT_FOUND:
            if isinstance(self.error, NotFoundError):
                raise self.error
            raise NotFoundError("lookup", "resource not found")
        raise self.error


__all__ = [
    "ResultKind",
    "BackendFamily",
    "HandlerFailurePolicy",
    "DecodeFailurePolicy",
    "BackendResult",
]
