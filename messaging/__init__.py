# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Producer side of the fabric
# PURPOSE: Topology reconciliation and channel publishing
# CREATED: 12 OCT 2026
# ============================================================================
"""
Messaging Module

Producer-side components: the topology reconciler and the channel publisher.

Usage:
    from messaging import ChannelPublisher

    publisher = ChannelPublisher(config, notifications, queues)
    publisher.publish("hello", "orders", [Subscriber(channel="billing")])
"""

from messaging.topology import ReconcileReport, TopologyReconciler
from messaging.publisher import ChannelPublisher, create_publisher

__all__ = [
    "ReconcileReport",
    "TopologyReconciler",
    "ChannelPublisher",
    "create_publisher",
]
