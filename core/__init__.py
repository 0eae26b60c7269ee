# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core module initialization
# PURPOSE: Export configuration, contracts, errors and models
# CREATED: 12 OCT 2026
# ============================================================================

from core.config import FabricConfig
from core.contracts import (
    BackendFamily,
    BackendResult,
    DecodeFailurePolicy,
    HandlerFailurePolicy,
    ResultKind,
)
from core.errors import (
    AlreadyExistsError,
    BackendError,
    EnvelopeDecodeError,
    FabricError,
    NotFoundError,
)
from core.models import ConsumableMessage, Envelope, Subscriber

__all__ = [
    # Config
    "FabricConfig",
    # Enums / results
    "BackendFamily",
    "BackendResult",
    "DecodeFailurePolicy",
    "HandlerFailurePolicy",
    "ResultKind",
    # Errors
    "FabricError",
    "BackendError",
    "NotFoundError",
    "AlreadyExistsError",
    "EnvelopeDecodeError",
    # Models
    "ConsumableMessage",
    "Envelope",
    "Subscriber",
]
