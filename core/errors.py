# ============================================================================
# FABRIC ERRORS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Foundation - Error taxonomy
# PURPOSE: Distinguish absent resources from real backend failures
# CREATED: 12 OCT 2026
# ============================================================================
"""
Fabric Errors

Error taxonomy shared by the backends, the topology reconciler and the
consume loop.

    FabricError
    ├── BackendError            any backend failure (always propagated)
    │   ├── NotFoundError       resource absent (drives create fallback)
    │   └── AlreadyExistsError  racing create (treated as success)
    └── EnvelopeDecodeError     message body could not be decoded
"""

from typing import Optional


class FabricError(Exception):
    """Base exception for the messaging fabric."""
    pass


class BackendError(FabricError):
    """
    A call to the notification or queue service failed.

    Carries the backend's error code and HTTP status so callers can log
    them; the reconciler never retries these.
    """

    def __init__(
        self,
        operation: str,
        message: str = "",
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.operation = operation
        self.code = code
        self.status_code = status_code
        detail = message or code or "backend error"
        super().__init__(f"{operation} failed: {detail}")


class NotFoundError(BackendError):
    """The addressed topic or queue does not exist."""
    pass


class AlreadyExistsError(BackendError):
    """A create call lost a race against another creator."""
    pass


class EnvelopeDecodeError(FabricError):
    """A received message body is not a decodable envelope."""

    def __init__(self, reason: str, body: Optional[str] = None):
        self.reason = reason
        self.body = body
        super().__init__(f"Cannot decode message body: {reason}")


__all__ = [
    "FabricError",
    "BackendError",
    "NotFoundError",
    "AlreadyExistsError",
    "EnvelopeDecodeError",
]
