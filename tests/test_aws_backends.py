# ============================================================================
# AWS BACKEND TESTS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Tests - boto3 SNS/SQS adapters
# PURPOSE: Verify call shapes and ClientError classification
# CREATED: 12 OCT 2026
# ============================================================================
"""
AWS Backend Tests

Mocked boto3 clients; errors are real botocore ClientErrors so the
classification path is the production one. No network.

Run with:
    pytest tests/test_aws_backends.py -v
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from core.contracts import ResultKind
from core.errors import AlreadyExistsError, BackendError, NotFoundError
from infrastructure.aws import (
    SnsNotificationService,
    SqsQueueService,
    client_error_details,
    create_aws_backends,
)

TOPIC_ARN = "arn:aws:sns:eu-west-1:123456789012:orders"
QUEUE_URL = "https://sqs.eu-west-1.amazonaws.com/123456789012/billing"


def _client_error(code, status=400, operation="Operation"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} happened"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def sns_client():
    return MagicMock()


@pytest.fixture
def sqs_client():
    return MagicMock()


@pytest.fixture
def sns(sns_client, config):
    return SnsNotificationService(sns_client, config)


@pytest.fixture
def sqs(sqs_client, config):
    return SqsQueueService(sqs_client, config)


class TestClientErrorDetails:

    def test_extracts_fields(self):
        code, status, message = client_error_details(_client_error("NotFound", 404))
        assert code == "NotFound"
        assert status == 404
        assert message == "NotFound happened"


class TestSns:

    def test_describe_ok(self, sns, sns_client):
        sns_client.get_topic_attributes.return_value = {"Attributes": {"TopicArn": TOPIC_ARN}}

        result = sns.describe_topic(TOPIC_ARN)

        assert result.is_ok
        assert result.value == {"TopicArn": TOPIC_ARN}
        sns_client.get_topic_attributes.assert_called_once_with(TopicArn=TOPIC_ARN)

    @pytest.mark.parametrize("code, status", [
        ("NotFound", 404),
        ("NotFoundException", 400),
        ("SomethingElse", 404),
    ])
    def test_describe_not_found(self, sns, sns_client, code, status):
        sns_client.get_topic_attributes.side_effect = _client_error(code, status)

        result = sns.describe_topic(TOPIC_ARN)

        assert result.kind == ResultKind.NOT_FOUND
        with pytest.raises(NotFoundError):
            result.unwrap()

    def test_describe_other_error(self, sns, sns_client):
        sns_client.get_topic_attributes.side_effect = _client_error("AuthorizationError", 403)

        result = sns.describe_topic(TOPIC_ARN)

        assert result.kind == ResultKind.ERROR
        assert result.error.code == "AuthorizationError"
        assert result.error.status_code == 403

    def test_connection_error_is_error(self, sns, sns_client):
        sns_client.get_topic_attributes.side_effect = EndpointConnectionError(endpoint_url="http://x")

        result = sns.describe_topic(TOPIC_ARN)

        assert result.kind == ResultKind.ERROR
        assert isinstance(result.error, BackendError)

    def test_create_topic(self, sns, sns_client):
        sns_client.create_topic.return_value = {"TopicArn": TOPIC_ARN}
        assert sns.create_topic("orders") == TOPIC_ARN
        sns_client.create_topic.assert_called_once_with(Name="orders")

    def test_list_subscriptions_paginates(self, sns, sns_client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Subscriptions": [{"Protocol": "sqs", "Endpoint": "arn:a", "SubscriptionArn": "s1"}]},
            {"Subscriptions": [{"Protocol": "email", "Endpoint": "x@y", "SubscriptionArn": "s2"}]},
        ]
        sns_client.get_paginator.return_value = paginator

        subscriptions = sns.list_subscriptions(TOPIC_ARN)

        sns_client.get_paginator.assert_called_once_with("list_subscriptions_by_topic")
        paginator.paginate.assert_called_once_with(TopicArn=TOPIC_ARN)
        assert [(s.protocol, s.endpoint) for s in subscriptions] == [("sqs", "arn:a"), ("email", "x@y")]
        assert subscriptions[0].matches("sqs", "arn:a")

    def test_subscribe(self, sns, sns_client):
        sns_client.subscribe.return_value = {"SubscriptionArn": "s1"}

        assert sns.subscribe("arn:queue", "sqs", TOPIC_ARN) == "s1"
        sns_client.subscribe.assert_called_once_with(
            TopicArn=TOPIC_ARN,
            Protocol="sqs",
            Endpoint="arn:queue",
            ReturnSubscriptionArn=True,
        )

    def test_publish(self, sns, sns_client):
        sns_client.publish.return_value = {"MessageId": "abc"}
        assert sns.publish(TOPIC_ARN, "{}") == "abc"
        sns_client.publish.assert_called_once_with(TopicArn=TOPIC_ARN, Message="{}")

    def test_publish_error_raises(self, sns, sns_client):
        sns_client.publish.side_effect = _client_error("Throttling", 400)

        with pytest.raises(BackendError) as exc_info:
            sns.publish(TOPIC_ARN, "{}")
        assert exc_info.value.operation == "Publish"
        assert exc_info.value.code == "Throttling"


class TestSqs:

    @pytest.mark.parametrize("code", [
        "AWS.SimpleQueueService.NonExistentQueue",
        "QueueDoesNotExist",
    ])
    def test_describe_not_found(self, sqs, sqs_client, code):
        sqs_client.get_queue_attributes.side_effect = _client_error(code, 400)
        assert sqs.describe_queue(QUEUE_URL).is_not_found

    def test_bare_400_is_error(self, sqs, sqs_client):
        sqs_client.get_queue_attributes.side_effect = _client_error("InvalidParameterValue", 400)
        assert sqs.describe_queue(QUEUE_URL).kind == ResultKind.ERROR

    def test_sns_code_not_recognised_for_queue(self, sqs, sqs_client):
        sqs_client.get_queue_attributes.side_effect = _client_error("NotFound", 404)
        assert sqs.describe_queue(QUEUE_URL).kind == ResultKind.ERROR

    def test_describe_ok(self, sqs, sqs_client):
        sqs_client.get_queue_attributes.return_value = {"Attributes": {"QueueArn": "arn"}}

        assert sqs.describe_queue(QUEUE_URL).value == {"QueueArn": "arn"}
        sqs_client.get_queue_attributes.assert_called_once_with(
            QueueUrl=QUEUE_URL, AttributeNames=["QueueArn"]
        )

    @pytest.mark.parametrize("code", [
        "QueueAlreadyExists",
        "AWS.SimpleQueueService.QueueNameExists",
    ])
    def test_create_race(self, sqs, sqs_client, code):
        sqs_client.create_queue.side_effect = _client_error(code, 400)

        with pytest.raises(AlreadyExistsError):
            sqs.create_queue("billing", {})

    def test_create_queue(self, sqs, sqs_client):
        sqs_client.create_queue.return_value = {"QueueUrl": QUEUE_URL}

        assert sqs.create_queue("billing", {"ReceiveMessageWaitTimeSeconds": "20"}) == QUEUE_URL
        sqs_client.create_queue.assert_called_once_with(
            QueueName="billing",
            Attributes={"ReceiveMessageWaitTimeSeconds": "20"},
        )

    def test_queue_address(self, sqs):
        assert sqs.get_queue_address(QUEUE_URL) == "arn:aws:sqs:eu-west-1:123456789012:billing"

    def test_get_attributes_missing_policy(self, sqs, sqs_client):
        sqs_client.get_queue_attributes.return_value = {}
        assert sqs.get_attributes(QUEUE_URL, ["Policy"]) == {}

    def test_set_attributes(self, sqs, sqs_client):
        sqs.set_attributes(QUEUE_URL, {"Policy": "{}"})
        sqs_client.set_queue_attributes.assert_called_once_with(
            QueueUrl=QUEUE_URL, Attributes={"Policy": "{}"}
        )

    def test_receive(self, sqs, sqs_client):
        sqs_client.receive_message.return_value = {
            "Messages": [
                {"MessageId": "m1", "ReceiptHandle": "r1", "Body": "{}", "Attributes": {"SentTimestamp": "1"}},
            ]
        }

        messages = sqs.receive(QUEUE_URL, 10, 20, 600)

        assert len(messages) == 1
        assert messages[0].message_id == "m1"
        assert messages[0].receipt_handle == "r1"
        assert messages[0].attributes == {"SentTimestamp": "1"}
        kwargs = sqs_client.receive_message.call_args.kwargs
        assert kwargs["QueueUrl"] == QUEUE_URL
        assert kwargs["MaxNumberOfMessages"] == 10
        assert kwargs["WaitTimeSeconds"] == 20
        assert kwargs["VisibilityTimeout"] == 600

    def test_receive_empty(self, sqs, sqs_client):
        sqs_client.receive_message.return_value = {}
        assert sqs.receive(QUEUE_URL, 10, 20, 600) == []

    def test_delete(self, sqs, sqs_client):
        sqs.delete(QUEUE_URL, "r1")
        sqs_client.delete_message.assert_called_once_with(QueueUrl=QUEUE_URL, ReceiptHandle="r1")

    def test_delete_error_raises(self, sqs, sqs_client):
        sqs_client.delete_message.side_effect = _client_error("ReceiptHandleIsInvalid", 400)

        with pytest.raises(BackendError):
            sqs.delete(QUEUE_URL, "r1")


class TestFactory:

    def test_clients_from_session(self, config):
        session = MagicMock()

        sns, sqs = create_aws_backends(config, session=session)

        services = [call.args[0] for call in session.client.call_args_list]
        assert services == ["sns", "sqs"]
        assert isinstance(sns, SnsNotificationService)
        assert isinstance(sqs, SqsQueueService)
        boto_config = session.client.call_args.kwargs["config"]
        assert boto_config.read_timeout > config.long_poll_seconds
