# ============================================================================
# TOPOLOGY RECONCILER
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Topic/queue/subscription/policy provisioning
# PURPOSE: Ensure the fan-out topology exists before messages flow
# CREATED: 12 OCT 2026
# ============================================================================
"""
Topology Reconciler

Brings backend state in line with the desired topology for one channel:

    topic(channel)
      └── subscription(sqs → queue(subscriber.channel))   per subscriber
            └── queue policy allowing topic → queue        per subscriber

Every ensure step is "describe; only on NOT_FOUND create, then describe
again". The warm path (everything exists) costs one read per resource.
Nothing is ever deleted.

Safe to run concurrently from several producers: a create that loses a race
(AlreadyExistsError) counts as success, and the confirming describe decides.
Any other backend error propagates unchanged.
"""

import json
from dataclasses import dataclass, field
from typing import Iterable, List

from core.config import FabricConfig
from core.config.defaults import ReceiveDefaults
from core.errors import AlreadyExistsError, BackendError
from core.logging import ComponentType, get_logger, log_context
from core.models.policy import merge_statement, parse_policy, policy_permits
from core.models.topology import (
    SUBSCRIPTION_PROTOCOL,
    Subscriber,
    queue_url,
    topic_arn,
)
from infrastructure.backends import NotificationService, QueueService

logger = get_logger(__name__, ComponentType.RECONCILER)

POLICY_ATTRIBUTE = "Policy"


@dataclass
class ReconcileReport:
    """What one reconcile() call had to create or change."""
    channel: str
    topic_arn: str
    topic_created: bool = False
    queues_created: List[str] = field(default_factory=list)
    subscriptions_created: List[str] = field(default_factory=list)
    policies_updated: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.topic_created
            or self.queues_created
            or self.subscriptions_created
            or self.policies_updated
        )


class TopologyReconciler:
    """Idempotently provisions topics, queues, subscriptions and policies."""

    def __init__(
        self,
        config: FabricConfig,
        notifications: NotificationService,
        queues: QueueService,
    ):
        self.config = config
        self._notifications = notifications
        self._queues = queues
        self._queue_wait_attribute = ReceiveDefaults().queue_wait_attribute

    def reconcile(self, channel: str, subscribers: Iterable[Subscriber]) -> ReconcileReport:
        """
        Ensure the topic for channel and everything each subscriber needs.

        Args:
            channel: Producer channel (topic name)
            subscribers: Consumers of that channel

        Returns:
            ReconcileReport of what was created

        Raises:
            BackendError: on any failure other than a recognised absence
        """
        arn = topic_arn(self.config, channel)
        report = ReconcileReport(channel=channel, topic_arn=arn)

        with log_context(channel=channel, topic_arn=arn, operation="reconcile"):
            report.topic_created = self.ensure_topic(channel)

            for subscriber in subscribers:
                with log_context(subscriber=subscriber.channel):
                    self._ensure_subscriber(arn, subscriber, report)

            if report.changed:
                logger.info(
                    f"Topology reconciled for {channel}",
                    extra={
                        "topic_created": report.topic_created,
                        "queues_created": report.queues_created,
                        "subscriptions_created": report.subscriptions_created,
                        "policies_updated": report.policies_updated,
                    },
                )
            else:
                logger.debug(f"Topology for {channel} already in place")

        return report

    def _ensure_subscriber(self, arn: str, subscriber: Subscriber, report: ReconcileReport) -> None:
        url = queue_url(self.config, subscriber.channel)

        if self.ensure_queue(subscriber.channel):
            report.queues_created.append(subscriber.channel)

        queue_arn = self._queues.get_queue_address(url)

        if self.ensure_subscription(arn, queue_arn):
            report.subscriptions_created.append(subscriber.channel)

        if self.ensure_policy(url, queue_arn, arn, subscriber.channel):
            report.policies_updated.append(subscriber.channel)

    # ------------------------------------------------------------------
    # Ensure steps
    # ------------------------------------------------------------------

    def ensure_topic(self, channel: str) -> bool:
        """
        Make sure the channel's topic exists.

        Returns:
            True if the topic had to be created
        """
        arn = topic_arn(self.config, channel)
        result = self._notifications.describe_topic(arn)
        if result.is_ok:
            return False
        if not result.is_not_found:
            result.unwrap()

        logger.info(f"Topic {arn} not found, creating")
        try:
            self._notifications.create_topic(channel)
        except AlreadyExistsError:
            logger.info(f"Topic {arn} created concurrently")

        self._notifications.describe_topic(arn).unwrap()
        return True

    def ensure_queue(self, name: str) -> bool:
        """
        Make sure a subscriber queue exists.

        New queues get a 20s receive wait so every receive long-polls.

        Returns:
            True if the queue had to be created
        """
        url = queue_url(self.config, name)
        result = self._queues.describe_queue(url)
        if result.is_ok:
            return False
        if not result.is_not_found:
            result.unwrap()

        logger.info(f"Queue {url} not found, creating")
        try:
            self._queues.create_queue(
                name,
                {self._queue_wait_attribute: str(self.config.long_poll_seconds)},
            )
        except AlreadyExistsError:
            logger.info(f"Queue {url} created concurrently")

        self._queues.describe_queue(url).unwrap()
        return True

    def ensure_subscription(self, topic: str, queue_arn: str) -> bool:
        """
        Make sure the topic delivers into the queue.

        Matches on exact protocol and endpoint only.

        Returns:
            True if the subscription had to be created
        """
        for subscription in self._notifications.list_subscriptions(topic):
            if subscription.matches(SUBSCRIPTION_PROTOCOL, queue_arn):
                return False

        logger.info(f"Subscribing {queue_arn} to {topic}")
        self._notifications.subscribe(queue_arn, SUBSCRIPTION_PROTOCOL, topic)
        return True

    def ensure_policy(self, url: str, queue_arn: str, topic: str, channel_name: str) -> bool:
        """
        Make sure the queue policy lets the topic send into it.

        Unrelated statements already on the queue are preserved.

        Returns:
            True if the policy had to be written
        """
        attributes = self._queues.get_attributes(url, [POLICY_ATTRIBUTE])
        try:
            policy = parse_policy(attributes.get(POLICY_ATTRIBUTE))
        except ValueError as e:
            raise BackendError(
                "GetQueueAttributes",
                f"queue policy on {url} is not valid JSON: {e}",
            ) from e

        if policy_permits(policy, queue_arn, topic):
            return False

        merged = merge_statement(policy, queue_arn, topic, channel_name)
        logger.info(
            f"Granting {topic} send access to {queue_arn}",
            extra={"statements": len(merged["Statement"])},
        )
        self._queues.set_attributes(url, {POLICY_ATTRIBUTE: json.dumps(merged)})
        return True


__all__ = [
    "ReconcileReport",
    "TopologyReconciler",
]
