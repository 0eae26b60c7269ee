# ============================================================================
# BACKEND CAPABILITY INTERFACES
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Infrastructure - Notification and queue service contracts
# PURPOSE: Operations the fabric calls on the managed backend
# CREATED: 12 OCT 2026
# ============================================================================
"""
Backend Capability Interfaces

The reconciler, publisher and consume loop only talk to the backend through
these two abstract services. infrastructure.aws implements them with boto3;
tests use an in-memory fake.

Error contract:
    describe_topic / describe_queue return a BackendResult tagged
    OK | NOT_FOUND | ERROR. Every other operation raises BackendError
    (AlreadyExistsError for a create that lost a race).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from core.contracts import BackendResult
from core.models.topology import SubscriptionInfo


# Receive-time attribute: epoch milliseconds at which the queue accepted the message
SENT_TIMESTAMP_ATTRIBUTE = "SentTimestamp"


@dataclass(frozen=True)
class ReceivedMessage:
    """A message leased from a queue."""
    message_id: str
    receipt_handle: str
    body: str
    attributes: Dict[str, str] = field(default_factory=dict)


class NotificationService(ABC):
    """Topic-based broadcast service."""

    @abstractmethod
    def describe_topic(self, topic_arn: str) -> BackendResult:
        """Look up a topic; OK value is its attribute dict."""
        pass

    @abstractmethod
    def create_topic(self, name: str) -> str:
        """Create a topic by name and return its ARN."""
        pass

    @abstractmethod
    def list_subscriptions(self, topic_arn: str) -> List[SubscriptionInfo]:
        """All subscriptions currently attached to a topic."""
        pass

    @abstractmethod
    def subscribe(self, endpoint: str, protocol: str, topic_arn: str) -> Optional[str]:
        """Subscribe an endpoint to a topic; returns the subscription ARN."""
        pass

    @abstractmethod
    def publish(self, topic_arn: str, body: str) -> str:
        """Publish a message body to a topic; returns the backend message id."""
        pass


class QueueService(ABC):
    """Pull-based queue service with visibility leasing."""

    @abstractmethod
    def describe_queue(self, queue_url: str) -> BackendResult:
        """Look up a queue; OK value is its attribute dict."""
        pass

    @abstractmethod
    def create_queue(self, name: str, attributes: Dict[str, str]) -> str:
        """Create a queue by name and return its URL."""
        pass

    @abstractmethod
    def get_queue_address(self, queue_url: str) -> str:
        """The queue's ARN, used as subscription endpoint and policy resource."""
        pass

    @abstractmethod
    def get_attributes(self, queue_url: str, names: Sequence[str]) -> Dict[str, str]:
        """Fetch named queue attributes; absent attributes are omitted."""
        pass

    @abstractmethod
    def set_attributes(self, queue_url: str, attributes: Dict[str, str]) -> None:
        pass

    @abstractmethod
    def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_seconds: int,
    ) -> List[ReceivedMessage]:
        """Lease up to max_messages, long-polling up to wait_seconds."""
        pass

    @abstractmethod
    def delete(self, queue_url: str, receipt_handle: str) -> None:
        """Acknowledge a leased message."""
        pass


__all__ = [
    "SENT_TIMESTAMP_ATTRIBUTE",
    "ReceivedMessage",
    "NotificationService",
    "QueueService",
]
