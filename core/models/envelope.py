# ============================================================================
# MESSAGE ENVELOPE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Envelope encoding and decoding
# PURPOSE: Wrap published payloads with their channel, unwrap on receipt
# CREATED: 12 OCT 2026
# ============================================================================
"""
Message Envelope

Wire format published to a topic (SNS Message field):
    {"data": <payload>, "channel": "<channel>"}

Legacy format (published before channel tagging existed):
    <payload>

What arrives in a subscriber queue is the SNS notification wrapping the
published Message:
    {"Type": "Notification", "MessageId": "...", "TopicArn": "...",
     "Message": "{\"data\": ..., \"channel\": ...}", ...}

Queues subscribed with raw message delivery receive the published Message
directly; a body that is not an SNS notification is decoded that way.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.errors import EnvelopeDecodeError

NOTIFICATION_TYPE = "Notification"


class Envelope(BaseModel):
    """Payload plus the channel it was published to."""

    data: Any = Field(default=None, description="Published payload")
    channel: Optional[str] = Field(default=None, description="Producer channel")

    def to_body(self) -> str:
        """
        Serialize to the published message body.

        Raises:
            TypeError: if the payload is not JSON-serialisable
        """
        return json.dumps({"data": self.data, "channel": self.channel})


@dataclass(frozen=True)
class ConsumableMessage:
    """
    What a handler receives.

    channel is None for legacy messages.
    """
    msg: Any
    channel: Optional[str] = None
    message_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"msg": self.msg, "channel": self.channel}


def encode_envelope(message: Any, channel: str) -> str:
    """
    Build the published body for a payload on a channel.

    Payloads must already be plain JSON types; bytes, sets and dates are
    rejected rather than stringified.

    Raises:
        TypeError: if the payload is not JSON-serialisable
    """
    return Envelope(data=message, channel=channel).to_body()


def _unwrap_transport(body: str) -> str:
    """Return the published Message from a queue body."""
    try:
        outer = json.loads(body)
    except (TypeError, ValueError) as e:
        raise EnvelopeDecodeError(f"body is not JSON: {e}", body) from e

    if (
        isinstance(outer, dict)
        and outer.get("Type") == NOTIFICATION_TYPE
        and "Message" in outer
    ):
        message = outer["Message"]
        if not isinstance(message, str):
            raise EnvelopeDecodeError("notification Message is not a string", body)
        return message

    # Raw message delivery
    return body


def decode_envelope(body: Optional[str]) -> Envelope:
    """
    Decode a queue message body into an Envelope.

    A mapping with a "data" key is an envelope; anything else is a legacy
    payload with no channel.

    Raises:
        EnvelopeDecodeError: if either layer is not valid JSON
    """
    if body is None:
        raise EnvelopeDecodeError("empty body")

    message = _unwrap_transport(body)

    try:
        inner = json.loads(message)
    except (TypeError, ValueError) as e:
        raise EnvelopeDecodeError(f"payload is not JSON: {e}", body) from e

    if isinstance(inner, dict) and "data" in inner:
        channel = inner.get("channel")
        if channel is not None and not isinstance(channel, str):
            raise EnvelopeDecodeError("channel is not a string", body)
        return Envelope(data=inner["data"], channel=channel)

    return Envelope(data=inner, channel=None)


def to_consumable(envelope: Envelope, message_id: Optional[str] = None) -> ConsumableMessage:
    return ConsumableMessage(msg=envelope.data, channel=envelope.channel, message_id=message_id)


__all__ = [
    "NOTIFICATION_TYPE",
    "Envelope",
    "ConsumableMessage",
    "encode_envelope",
    "decode_envelope",
    "to_consumable",
]
