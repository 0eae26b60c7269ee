# ============================================================================
# AWS BACKENDS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Infrastructure - SNS and SQS via boto3
# PURPOSE: Concrete NotificationService / QueueService implementations
# CREATED: 12 OCT 2026
# ============================================================================
"""
AWS Backends

boto3 implementations of the backend capability interfaces.

Key Design Decisions:
    - Clients are injected; create_aws_backends() builds them from config
    - Retries are left to botocore's own retry handler; nothing here retries
    - ClientError codes are classified through config.error_codes so the
      not-found mapping stays data, not code
    - Lookups return BackendResult, everything else raises BackendError

Usage:
    notifications, queues = create_aws_backends(config)
    result = notifications.describe_topic(topic_arn)
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from core.config import FabricConfig
from core.contracts import BackendFamily, BackendResult
from core.errors import AlreadyExistsError, BackendError, NotFoundError
from core.models.topology import SubscriptionInfo, queue_arn_from_url
from infrastructure.backends import (
    SENT_TIMESTAMP_ATTRIBUTE,
    NotificationService,
    QueueService,
    ReceivedMessage,
)

logger = logging.getLogger(__name__)


# ============================================================================
# ERROR TRANSLATION
# ============================================================================

def client_error_details(error: ClientError) -> Tuple[Optional[str], Optional[int], str]:
    """Extract (code, http status, message) from a botocore ClientError."""
    response = getattr(error, "response", None) or {}
    details = response.get("Error", {}) or {}
    code = details.get("Code")
    message = details.get("Message") or str(error)
    status = (response.get("ResponseMetadata", {}) or {}).get("HTTPStatusCode")
    return code, status, message


class _AwsService:
    """Shared error translation for one backend family."""

    family: BackendFamily

    def __init__(self, client: Any, config: FabricConfig):
        self._client = client
        self.config = config

    def _translate(self, operation: str, error: Exception) -> BackendError:
        """Map a boto error onto the fabric's error taxonomy."""
        if isinstance(error, ClientError):
            code, status, message = client_error_details(error)
            mapping = self.config.error_codes
            if mapping.is_not_found(self.family, code, status):
                return NotFoundError(operation, message, code=code, status_code=status)
            if mapping.is_already_exists(self.family, code):
                return AlreadyExistsError(operation, message, code=code, status_code=status)
            return BackendError(operation, message, code=code, status_code=status)
        return BackendError(operation, str(error))

    def _lookup(self, operation: str, call, **kwargs) -> BackendResult:
        """Run a describe-style call and tag its outcome."""
        try:
            response = call(**kwargs)
        except (ClientError, BotoCoreError) as e:
            error = self._translate(operation, e)
            if isinstance(error, NotFoundError):
                logger.debug(f"{operation}: not found ({error.code})")
                return BackendResult.not_found(error)
            return BackendResult.failed(error)
        return BackendResult.ok(response.get("Attributes", {}))


# ============================================================================
# SNS
# ============================================================================

class SnsNotificationService(_AwsService, NotificationService):
    """NotificationService backed by Amazon SNS."""

    family = BackendFamily.NOTIFICATION

    def describe_topic(self, topic_arn: str) -> BackendResult:
        return self._lookup(
            "GetTopicAttributes",
            self._client.get_topic_attributes,
            TopicArn=topic_arn,
        )

    def create_topic(self, name: str) -> str:
        try:
            response = self._client.create_topic(Name=name)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("CreateTopic", e) from e
        return response["TopicArn"]

    def list_subscriptions(self, topic_arn: str) -> List[SubscriptionInfo]:
        subscriptions = []
        try:
            paginator = self._client.get_paginator("list_subscriptions_by_topic")
            for page in paginator.paginate(TopicArn=topic_arn):
                for sub in page.get("Subscriptions", []):
                    subscriptions.append(
                        SubscriptionInfo(
                            protocol=sub.get("Protocol", ""),
                            endpoint=sub.get("Endpoint", ""),
                            subscription_arn=sub.get("SubscriptionArn"),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise self._translate("ListSubscriptionsByTopic", e) from e
        return subscriptions

    def subscribe(self, endpoint: str, protocol: str, topic_arn: str) -> Optional[str]:
        try:
            response = self._client.subscribe(
                TopicArn=topic_arn,
                Protocol=protocol,
                Endpoint=endpoint,
                ReturnSubscriptionArn=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate("Subscribe", e) from e
        return response.get("SubscriptionArn")

    def publish(self, topic_arn: str, body: str) -> str:
        try:
            response = self._client.publish(TopicArn=topic_arn, Message=body)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("Publish", e) from e
        return response["MessageId"]


# ============================================================================
# SQS
# ============================================================================

class SqsQueueService(_AwsService, QueueService):
    """QueueService backed by Amazon SQS."""

    family = BackendFamily.QUEUE

    def describe_queue(self, queue_url: str) -> BackendResult:
        return self._lookup(
            "GetQueueAttributes",
            self._client.get_queue_attributes,
            QueueUrl=queue_url,
            AttributeNames=["QueueArn"],
        )

    def create_queue(self, name: str, attributes: Dict[str, str]) -> str:
        try:
            response = self._client.create_queue(QueueName=name, Attributes=attributes)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("CreateQueue", e) from e
        return response["QueueUrl"]

    def get_queue_address(self, queue_url: str) -> str:
        return queue_arn_from_url(queue_url, self.config.partition)

    def get_attributes(self, queue_url: str, names: Sequence[str]) -> Dict[str, str]:
        try:
            response = self._client.get_queue_attributes(
                QueueUrl=queue_url,
                AttributeNames=list(names),
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate("GetQueueAttributes", e) from e
        return response.get("Attributes") or {}

    def set_attributes(self, queue_url: str, attributes: Dict[str, str]) -> None:
        try:
            self._client.set_queue_attributes(QueueUrl=queue_url, Attributes=attributes)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("SetQueueAttributes", e) from e

    def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_seconds: int,
    ) -> List[ReceivedMessage]:
        try:
            response = self._client.receive_message(
                QueueUrl=queue_url,
                AttributeNames=[SENT_TIMESTAMP_ATTRIBUTE],
                MessageAttributeNames=["All"],
                MaxNumberOfMessages=max_messages,
                WaitTimeSeconds=wait_seconds,
                VisibilityTimeout=visibility_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate("ReceiveMessage", e) from e

        return [
            ReceivedMessage(
                message_id=raw.get("MessageId", ""),
                receipt_handle=raw["ReceiptHandle"],
                body=raw.get("Body", ""),
                attributes=raw.get("Attributes", {}) or {},
            )
            for raw in response.get("Messages", []) or []
        ]

    def delete(self, queue_url: str, receipt_handle: str) -> None:
        try:
            self._client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("DeleteMessage", e) from e


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def _boto_config(config: FabricConfig) -> BotoConfig:
    # Read timeout must outlast the long poll
    return BotoConfig(
        region_name=config.region,
        retries={"max_attempts": 5, "mode": "standard"},
        connect_timeout=10,
        read_timeout=config.long_poll_seconds + 20,
    )


def create_aws_backends(
    config: FabricConfig,
    session: Optional[boto3.session.Session] = None,
) -> Tuple[SnsNotificationService, SqsQueueService]:
    """
    Build SNS and SQS services for a configuration.

    Args:
        config: Fabric configuration (region, optional endpoint override)
        session: Optional boto3 session (default credential chain otherwise)
    """
    session = session or boto3.session.Session(region_name=config.region)
    boto_config = _boto_config(config)

    sns = session.client("sns", endpoint_url=config.endpoint_url, config=boto_config)
    sqs = session.client("sqs", endpoint_url=config.endpoint_url, config=boto_config)

    logger.info(
        f"AWS backends created (region={config.region}, "
        f"endpoint={config.endpoint_url or 'default'})"
    )
    return SnsNotificationService(sns, config), SqsQueueService(sqs, config)


__all__ = [
    "SnsNotificationService",
    "SqsQueueService",
    "client_error_details",
    "create_aws_backends",
]
