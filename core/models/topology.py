# ============================================================================
# TOPOLOGY MODELS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Subscriber model and resource identity derivation
# PURPOSE: Compute topic ARNs, queue URLs and queue ARNs from names
# CREATED: 12 OCT 2026
# ============================================================================
"""
Topology Models

Resource identities are pure functions of (partition, region, account, name)
and are never stored, so they can always be re-derived and cannot drift.

    Topic ARN  = arn:<partition>:sns:<region>:<account>:<channel>
    Queue URL  = https://sqs.<region>.amazonaws.com/<account>/<channel>
    Queue ARN  = arn:<partition>:sqs:<region>:<account>:<channel>
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from core.config import FabricConfig

SUBSCRIPTION_PROTOCOL = "sqs"


class Subscriber(BaseModel):
    """
    A consumer of a producer channel.

    channel is the consumer's own channel; its queue is named after it.
    handler is an opaque identifier resolved by the worker's registry.
    """
    model_config = ConfigDict(frozen=True)

    channel: str = Field(..., min_length=1, max_length=80)
    handler: Optional[str] = Field(default=None, description="Handler identifier")


@dataclass(frozen=True)
class SubscriptionInfo:
    """A topic → endpoint link as reported by the notification service."""
    protocol: str
    endpoint: str
    subscription_arn: Optional[str] = None

    def matches(self, protocol: str, endpoint: str) -> bool:
        """Exact protocol and endpoint equality."""
        return self.protocol == protocol and self.endpoint == endpoint


def topic_arn(config: FabricConfig, channel: str) -> str:
    """Derive the topic ARN for a channel."""
    return f"arn:{config.partition}:sns:{config.region}:{config.account}:{channel}"


def queue_url(config: FabricConfig, channel: str) -> str:
    """Derive the queue URL for a channel."""
    return f"https://sqs.{config.region}.amazonaws.com/{config.account}/{channel}"


def queue_arn_from_url(url: str, partition: str = "aws") -> str:
    """
    Convert a queue URL into its ARN.

    Works for both sqs.<region>.amazonaws.com and the legacy
    <region>.queue.amazonaws.com host forms.
    """
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) != 2:
        raise ValueError(f"Not a queue URL: {url}")
    account, name = parts

    host_parts = (parsed.hostname or "").split(".")
    if host_parts and host_parts[0] == "sqs" and len(host_parts) > 1:
        region = host_parts[1]
    elif len(host_parts) > 1 and host_parts[1] == "queue":
        region = host_parts[0]
    else:
        raise ValueError(f"Cannot determine region from queue URL: {url}")

    return f"arn:{partition}:sqs:{region}:{account}:{name}"


def resource_name(arn: str) -> str:
    """Last segment of an ARN (the topic or queue name)."""
    return arn.rsplit(":", 1)[-1]


__all__ = [
    "SUBSCRIPTION_PROTOCOL",
    "Subscriber",
    "SubscriptionInfo",
    "topic_arn",
    "queue_url",
    "queue_arn_from_url",
    "resource_name",
]
