# ============================================================================
# TEST FIXTURES - IN-MEMORY BACKEND
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Tests - Shared fixtures
# PURPOSE: Fake SNS/SQS with fan-out and a controllable visibility clock
# CREATED: 12 OCT 2026
# ============================================================================
"""
Shared fixtures.

FakeNotificationService and FakeQueueService implement the backend
capability interfaces in memory:
- topics fan out to "sqs" subscriptions, but only into queues whose
  policy grants the topic send access (as SNS would)
- queue messages carry a visibility deadline driven by FakeClock, so
  lease expiry can be simulated with clock.advance()
- every call is counted in .calls
"""

import itertools
import json
from collections import Counter
from typing import Dict, List, Optional, Sequence

import pytest

from core.config import FabricConfig
from core.contracts import BackendResult
from core.errors import AlreadyExistsError, BackendError, NotFoundError
from core.models.policy import parse_policy, policy_permits
from core.models.topology import SubscriptionInfo, queue_arn_from_url, queue_url, topic_arn
from handlers.registry import HandlerRegistry
from infrastructure.backends import (
    SENT_TIMESTAMP_ATTRIBUTE,
    NotificationService,
    QueueService,
    ReceivedMessage,
)
from messaging.publisher import ChannelPublisher
from messaging.topology import TopologyReconciler
from worker.consumer import ConsumeLoop


ACCOUNT = "123456789012"
REGION = "eu-west-1"


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self):
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeQueueService(QueueService):
    """In-memory SQS."""

    def __init__(self, config: FabricConfig, clock: FakeClock):
        self.config = config
        self.clock = clock
        self.queues: Dict[str, Dict] = {}
        self.calls: Counter = Counter()
        self.receive_calls: List[Dict] = []
        self.deleted: List[str] = []
        self.race_on_create = False
        self.describe_error: Optional[BackendError] = None
        self._ids = itertools.count(1)

    # -- helpers ------------------------------------------------------------

    def url_for(self, name: str) -> str:
        return queue_url(self.config, name)

    def messages(self, name: str) -> List[Dict]:
        return self.queues[self.url_for(name)]["messages"]

    def deliver(self, url: str, body: str) -> None:
        """Put a body on a queue (SNS delivery or a raw send)."""
        self.queues[url]["messages"].append({
            "message_id": f"m-{next(self._ids)}",
            "body": body,
            "visible_at": self.clock.now,
            "sent_at": self.clock.now,
            "receipt_handle": None,
        })

    def policy(self, name: str) -> Optional[Dict]:
        return parse_policy(self.queues[self.url_for(name)]["attributes"].get("Policy"))

    # -- QueueService ---------------------------------------------------------

    def describe_queue(self, queue_url: str) -> BackendResult:
        self.calls["describe_queue"] += 1
        if self.describe_error is not None:
            return BackendResult.failed(self.describe_error)
        if queue_url not in self.queues:
            return BackendResult.not_found(NotFoundError("GetQueueAttributes", code="QueueDoesNotExist"))
        return BackendResult.ok(dict(self.queues[queue_url]["attributes"]))

    def create_queue(self, name: str, attributes: Dict[str, str]) -> str:
        self.calls["create_queue"] += 1
        url = self.url_for(name)
        if url not in self.queues:
            self.queues[url] = {"attributes": dict(attributes), "messages": []}
        if self.race_on_create:
            raise AlreadyExistsError("CreateQueue", code="QueueAlreadyExists")
        return url

    def get_queue_address(self, queue_url: str) -> str:
        return queue_arn_from_url(queue_url)

    def get_attributes(self, queue_url: str, names: Sequence[str]) -> Dict[str, str]:
        self.calls["get_attributes"] += 1
        attributes = self.queues[queue_url]["attributes"]
        return {name: attributes[name] for name in names if name in attributes}

    def set_attributes(self, queue_url: str, attributes: Dict[str, str]) -> None:
        self.calls["set_attributes"] += 1
        self.queues[queue_url]["attributes"].update(attributes)

    def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_seconds: int,
    ) -> List[ReceivedMessage]:
        self.calls["receive"] += 1
        self.receive_calls.append({
            "queue_url": queue_url,
            "max_messages": max_messages,
            "wait_seconds": wait_seconds,
            "visibility_seconds": visibility_seconds,
        })
        if queue_url not in self.queues:
            raise NotFoundError("ReceiveMessage", code="QueueDoesNotExist")

        received = []
        for message in self.queues[queue_url]["messages"]:
            if len(received) >= max_messages:
                break
            if message["visible_at"] > self.clock.now:
                continue
            message["visible_at"] = self.clock.now + visibility_seconds
            message["receipt_handle"] = f"rh-{next(self._ids)}"
            received.append(
                ReceivedMessage(
                    message_id=message["message_id"],
                    receipt_handle=message["receipt_handle"],
                    body=message["body"],
                    attributes={SENT_TIMESTAMP_ATTRIBUTE: str(int(message["sent_at"] * 1000))},
                )
            )
        return received

    def delete(self, queue_url: str, receipt_handle: str) -> None:
        self.calls["delete"] += 1
        messages = self.queues[queue_url]["messages"]
        for message in messages:
            if message["receipt_handle"] == receipt_handle:
                messages.remove(message)
                self.deleted.append(message["message_id"])
                return


class FakeNotificationService(NotificationService):
    """In-memory SNS delivering into a FakeQueueService."""

    def __init__(self, config: FabricConfig, queues: FakeQueueService):
        self.config = config
        self.queue_service = queues
        self.topics: Dict[str, List[SubscriptionInfo]] = {}
        self.calls: Counter = Counter()
        self.published: List[Dict] = []
        self.describe_error: Optional[BackendError] = None
        self._ids = itertools.count(1)

    def describe_topic(self, topic_arn: str) -> BackendResult:
        self.calls["describe_topic"] += 1
        if self.describe_error is not None:
            return BackendResult.failed(self.describe_error)
        if topic_arn not in self.topics:
            return BackendResult.not_found(NotFoundError("GetTopicAttributes", code="NotFound", status_code=404))
        return BackendResult.ok({"TopicArn": topic_arn})

    def create_topic(self, name: str) -> str:
        self.calls["create_topic"] += 1
        arn = topic_arn(self.config, name)
        self.topics.setdefault(arn, [])
        return arn

    def list_subscriptions(self, topic_arn: str) -> List[SubscriptionInfo]:
        self.calls["list_subscriptions"] += 1
        return list(self.topics[topic_arn])

    def subscribe(self, endpoint: str, protocol: str, topic_arn: str) -> Optional[str]:
        self.calls["subscribe"] += 1
        arn = f"{topic_arn}:sub-{next(self._ids)}"
        self.topics[topic_arn].append(SubscriptionInfo(protocol, endpoint, arn))
        return arn

    def publish(self, topic_arn: str, body: str) -> str:
        self.calls["publish"] += 1
        message_id = f"pub-{next(self._ids)}"
        self.published.append({"topic_arn": topic_arn, "body": body, "message_id": message_id})

        notification = json.dumps({
            "Type": "Notification",
            "MessageId": message_id,
            "TopicArn": topic_arn,
            "Message": body,
        })
        for sub in self.topics[topic_arn]:
            if sub.protocol != "sqs":
                continue
            for url, queue in self.queue_service.queues.items():
                arn = queue_arn_from_url(url)
                if arn != sub.endpoint:
                    continue
                policy = parse_policy(queue["attributes"].get("Policy"))
                if policy_permits(policy, arn, topic_arn):
                    self.queue_service.deliver(url, notification)
        return message_id


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def config():
    return FabricConfig(account=ACCOUNT, region=REGION)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def queues(config, clock):
    return FakeQueueService(config, clock)


@pytest.fixture
def notifications(config, queues):
    return FakeNotificationService(config, queues)


@pytest.fixture
def reconciler(config, notifications, queues):
    return TopologyReconciler(config, notifications, queues)


@pytest.fixture
def publisher(config, notifications, queues):
    return ChannelPublisher(config, notifications, queues)


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def consume_loop(config, queues, registry):
    return ConsumeLoop(config, queues, registry)
