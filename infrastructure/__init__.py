# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Infrastructure - Backend interfaces and AWS implementations
# PURPOSE: Notification/queue service contracts and their boto3 backends
# CREATED: 12 OCT 2026
# ============================================================================
"""
Infrastructure module for the messaging fabric.

Provides:
- NotificationService / QueueService: capability interfaces
- SnsNotificationService / SqsQueueService: boto3 implementations
- create_aws_backends: build both from a FabricConfig

Usage:
    from infrastructure import create_aws_backends

    notifications, queues = create_aws_backends(config)
"""

from infrastructure.backends import NotificationService, QueueService, ReceivedMessage
from infrastructure.aws import SnsNotificationService, SqsQueueService, create_aws_backends

__all__ = [
    "NotificationService",
    "QueueService",
    "ReceivedMessage",
    "SnsNotificationService",
    "SqsQueueService",
    "create_aws_backends",
]
