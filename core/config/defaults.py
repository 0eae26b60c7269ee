# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Default configuration values
# PURPOSE: Receive limits, lease timing, backend error-code mapping
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Defaults

Fixed values the fabric depends on for interop with existing deployments.

Design:
- Immutable dataclasses for defaults
- Error-code mapping kept as data, one entry set per backend family
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

from core.contracts import BackendFamily


# Per-call ceiling imposed by SQS ReceiveMessage
MAX_RECEIVE_BATCH = 10

# "As many as allowed" sentinel for consume_once
RECEIVE_ALL = -1


@dataclass(frozen=True)
class ReceiveDefaults:
    """
    Defaults for queue receive and lease timing.
    """
    long_poll_seconds: int = 20
    visibility_timeout_seconds: int = 600  # long running handlers
    max_receive_batch: int = MAX_RECEIVE_BATCH

    # Written onto every queue the reconciler creates
    queue_wait_attribute: str = "ReceiveMessageWaitTimeSeconds"


@dataclass(frozen=True)
class ErrorCodeMapping:
    """
    Maps backend error codes and HTTP statuses onto result kinds.

    SNS reports a missing topic as 404/NotFound. SQS reports a missing
    queue as 400 with a queue-specific code, so its status alone is not
    enough to recognise absence.
    """
    sns_not_found_statuses: FrozenSet[int] = frozenset({404})
    sns_not_found_codes: FrozenSet[str] = frozenset({
        "NotFound",
        "NotFoundException",
    })
    sqs_not_found_statuses: FrozenSet[int] = frozenset()
    sqs_not_found_codes: FrozenSet[str] = frozenset({
        "AWS.SimpleQueueService.NonExistentQueue",
        "QueueDoesNotExist",
    })
    sqs_already_exists_codes: FrozenSet[str] = frozenset({
        "QueueAlreadyExists",
        "AWS.SimpleQueueService.QueueNameExists",
        "QueueNameExists",
    })

    def is_not_found(
        self,
        family: BackendFamily,
        code: Optional[str],
        status_code: Optional[int],
    ) -> bool:
        """Check whether an error means the addressed resource is absent."""
        if family == BackendFamily.NOTIFICATION:
            return code in self.sns_not_found_codes or status_code in self.sns_not_found_statuses
        return code in self.sqs_not_found_codes or status_code in self.sqs_not_found_statuses

    def is_already_exists(self, family: BackendFamily, code: Optional[str]) -> bool:
        """Check whether an error means a create lost a race."""
        if family == BackendFamily.QUEUE:
            return code in self.sqs_already_exists_codes
        return False


__all__ = [
    "MAX_RECEIVE_BATCH",
    "RECEIVE_ALL",
    "ReceiveDefaults",
    "ErrorCodeMapping",
]
