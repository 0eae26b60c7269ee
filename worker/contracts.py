# ============================================================================
# WORKER CONTRACTS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Worker process settings
# PURPOSE: Which channels a worker process consumes and how
# CREATED: 12 OCT 2026
# ============================================================================
"""
Worker Contracts

Settings for the worker process (python -m worker.main). The fabric
configuration itself (account, region, policies) is FabricConfig.

Environment:
    FABRIC_SUBSCRIBER_CHANNELS: Comma-separated channels to consume (REQUIRED)
    FABRIC_MAX_MESSAGES: Per-cycle bound, -1 for the ceiling (default -1)
    FABRIC_ERROR_BACKOFF: Seconds to pause after a failed cycle (default 1.0)
    HANDLER_MODULES: Comma-separated modules that register handlers
    FABRIC_LOG_LEVEL: Log level (default INFO)
    FABRIC_LOG_FORMAT: "json" for structured output
"""

import os
import socket
from dataclasses import dataclass, field
from typing import List

from core.config.defaults import RECEIVE_ALL


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class WorkerSettings:
    """Settings for a worker process."""

    channels: List[str]
    worker_id: str = ""
    max_messages: int = RECEIVE_ALL
    error_backoff_seconds: float = 1.0
    handler_modules: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "WorkerSettings":
        """Create settings from environment variables."""
        channels = _split_csv(os.getenv("FABRIC_SUBSCRIBER_CHANNELS", ""))
        if not channels:
            raise ValueError("FABRIC_SUBSCRIBER_CHANNELS environment variable is required")

        return cls(
            channels=channels,
            worker_id=os.getenv("WORKER_ID", f"worker-{socket.gethostname()}"),
            max_messages=int(os.getenv("FABRIC_MAX_MESSAGES", str(RECEIVE_ALL))),
            error_backoff_seconds=float(os.getenv("FABRIC_ERROR_BACKOFF", "1.0")),
            handler_modules=_split_csv(os.getenv("HANDLER_MODULES", "")),
            log_level=os.getenv("FABRIC_LOG_LEVEL", "INFO"),
            json_logs=os.getenv("FABRIC_LOG_FORMAT", "").lower() == "json",
        )


__all__ = [
    "WorkerSettings",
]
