# ============================================================================
# CHANNEL PUBLISHER
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Publish envelopes to channel topics
# PURPOSE: Reconcile topology, then broadcast to every subscriber queue
# CREATED: 12 OCT 2026
# ============================================================================
"""
Channel Publisher

Publishes a payload to a channel. Every publish reconciles the channel's
topology first, so no separate provisioning step is needed; a
reconciliation failure aborts the publish before anything is sent.

Usage:
    publisher = create_publisher(config)
    message_id = publisher.publish(
        {"order_id": 42},
        "orders",
        [Subscriber(channel="billing"), Subscriber(channel="shipping")],
    )
"""

from typing import Any, Iterable, Optional

from core.config import FabricConfig
from core.logging import ComponentType, get_logger, log_context
from core.models.envelope import encode_envelope
from core.models.topology import Subscriber, topic_arn
from infrastructure.backends import NotificationService, QueueService
from messaging.topology import TopologyReconciler

logger = get_logger(__name__, ComponentType.PUBLISHER)


class ChannelPublisher:
    """Publisher for fan-out channels."""

    def __init__(
        self,
        config: FabricConfig,
        notifications: NotificationService,
        queues: QueueService,
        reconciler: Optional[TopologyReconciler] = None,
    ):
        """
        Initialize channel publisher.

        Args:
            config: Fabric configuration
            notifications: Notification service the topic lives on
            queues: Queue service the subscriber queues live on
            reconciler: Reconciler to use (built from the services if omitted)
        """
        self.config = config
        self._notifications = notifications
        self._reconciler = reconciler or TopologyReconciler(config, notifications, queues)

    @property
    def reconciler(self) -> TopologyReconciler:
        return self._reconciler

    def publish(
        self,
        message: Any,
        channel: str,
        subscribers: Iterable[Subscriber],
    ) -> str:
        """
        Publish a payload to a channel.

        Args:
            message: JSON-serialisable payload
            channel: Producer channel
            subscribers: Consumers that must receive a copy

        Returns:
            Backend-assigned message id

        Raises:
            TypeError: if the payload is not JSON-serialisable (nothing is sent)
            BackendError: if reconciliation or the publish call fails
        """
        arn = topic_arn(self.config, channel)
        body = encode_envelope(message, channel)

        with log_context(channel=channel, topic_arn=arn, operation="publish"):
            self._reconciler.reconcile(channel, list(subscribers))

            message_id = self._notifications.publish(arn, body)

            logger.info(
                f"Published {message_id} to {channel}",
                extra={"message_id": message_id, "size": len(body)},
            )
            return message_id


def create_publisher(config: FabricConfig) -> ChannelPublisher:
    """Build a ChannelPublisher on the AWS backends."""
    from infrastructure.aws import create_aws_backends

    notifications, queues = create_aws_backends(config)
    return ChannelPublisher(config, notifications, queues)


__all__ = [
    "ChannelPublisher",
    "create_publisher",
]
