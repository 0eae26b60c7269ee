# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Configuration and defaults
# PURPOSE: Explicit account/region configuration passed to every component
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Module

FabricConfig is passed to the reconciler, publisher and consume loop at
construction. Only the worker entry point loads it from the environment.

Environment (FabricConfig.from_env):
    FABRIC_AWS_ACCOUNT_ID: AWS account id (REQUIRED)
    FABRIC_AWS_REGION: AWS region (falls back to AWS_REGION, AWS_DEFAULT_REGION)
    FABRIC_ENDPOINT_URL: Override endpoint (e.g. a local emulator)
    FABRIC_HANDLER_FAILURE_POLICY: "isolate" (default) or "abort"
    FABRIC_DECODE_FAILURE_POLICY: "skip" (default) or "delete"
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from core.config.defaults import (
    MAX_RECEIVE_BATCH,
    RECEIVE_ALL,
    ErrorCodeMapping,
    ReceiveDefaults,
)
from core.contracts import DecodeFailurePolicy, HandlerFailurePolicy

_RECEIVE = ReceiveDefaults()


@dataclass
class FabricConfig:
    """Account, region and timing for the messaging fabric."""

    account: str
    region: str
    partition: str = "aws"

    # Optional endpoint override for both services
    endpoint_url: Optional[str] = None

    # Receive / lease
    long_poll_seconds: int = _RECEIVE.long_poll_seconds
    visibility_timeout_seconds: int = _RECEIVE.visibility_timeout_seconds
    max_receive_batch: int = _RECEIVE.max_receive_batch

    # Failure handling in the consume loop
    handler_failure_policy: HandlerFailurePolicy = HandlerFailurePolicy.ISOLATE
    decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP

    error_codes: ErrorCodeMapping = field(default_factory=ErrorCodeMapping)

    def __post_init__(self):
        if not self.account:
            raise ValueError("account is required")
        if not self.region:
            raise ValueError("region is required")

    @classmethod
    def from_env(cls) -> "FabricConfig":
        """Load configuration from environment variables."""
        account = os.environ.get("FABRIC_AWS_ACCOUNT_ID", "")
        if not account:
            raise ValueError("FABRIC_AWS_ACCOUNT_ID environment variable is required")

        region = (
            os.environ.get("FABRIC_AWS_REGION")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
        )
        if not region:
            raise ValueError(
                "FABRIC_AWS_REGION (or AWS_REGION) environment variable is required"
            )

        return cls(
            account=account,
            region=region,
            endpoint_url=os.environ.get("FABRIC_ENDPOINT_URL") or None,
            handler_failure_policy=HandlerFailurePolicy(
                os.environ.get("FABRIC_HANDLER_FAILURE_POLICY", "isolate").lower()
            ),
            decode_failure_policy=DecodeFailurePolicy(
                os.environ.get("FABRIC_DECODE_FAILURE_POLICY", "skip").lower()
            ),
        )

    def receive_batch_size(self, max_messages: int) -> int:
        """
        Clamp a requested message count to the per-call ceiling.

        RECEIVE_ALL (-1), or anything at or above the ceiling, yields the
        ceiling.
        """
        if max_messages == RECEIVE_ALL or max_messages >= self.max_receive_batch:
            return self.max_receive_batch
        return max(1, max_messages)


__all__ = [
    "FabricConfig",
    "ErrorCodeMapping",
    "ReceiveDefaults",
    "MAX_RECEIVE_BATCH",
    "RECEIVE_ALL",
]
