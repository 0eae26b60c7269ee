# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Model exports
# PURPOSE: Central export point for envelope, topology and policy models
# CREATED: 12 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point
"""

from core.models.envelope import (
    ConsumableMessage,
    Envelope,
    decode_envelope,
    encode_envelope,
    to_consumable,
)
from core.models.policy import (
    build_policy,
    build_statement,
    merge_statement,
    normalize_statement,
    parse_policy,
    policy_permits,
    statements_equal,
)
from core.models.topology import (
    SUBSCRIPTION_PROTOCOL,
    Subscriber,
    SubscriptionInfo,
    queue_arn_from_url,
    queue_url,
    topic_arn,
)

__all__ = [
    # Envelope
    "Envelope",
    "ConsumableMessage",
    "encode_envelope",
    "decode_envelope",
    "to_consumable",
    # Topology
    "SUBSCRIPTION_PROTOCOL",
    "Subscriber",
    "SubscriptionInfo",
    "topic_arn",
    "queue_url",
    "queue_arn_from_url",
    # Policy
    "build_policy",
    "build_statement",
    "merge_statement",
    "normalize_statement",
    "parse_policy",
    "policy_permits",
    "statements_equal",
]
