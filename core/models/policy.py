# ============================================================================
# QUEUE ACCESS POLICY
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Policy document builder and statement comparison
# PURPOSE: Grant a topic permission to deliver into a subscriber queue
# CREATED: 12 OCT 2026
# ============================================================================
"""
Queue Access Policy

Builds the canonical policy that lets a topic send into a queue, and
compares it against whatever policy the queue currently carries.

Canonical document:
{
    "Version": "2012-10-17",
    "Id": "sns.<channel>.queue",
    "Statement": [{
        "Sid": "Allow-SNS-SendMessage",
        "Effect": "Allow",
        "Principal": "*",
        "Action": ["SQS:SendMessage"],
        "Resource": "<queue arn>",
        "Condition": {"ArnEquals": {"aws:SourceArn": "<topic arn>"}}
    }]
}

Comparison ignores Sid and statement order. The backend may return Action
as a scalar or a list and Principal as "*" or {"AWS": "*"}; both forms
compare equal.
"""

import copy
import json
from typing import Any, Dict, List, Optional, Union

from core.models.topology import resource_name

POLICY_VERSION = "2012-10-17"
STATEMENT_SID = "Allow-SNS-SendMessage"
SEND_MESSAGE_ACTION = "SQS:SendMessage"


def policy_id(channel_name: str) -> str:
    """Readable policy id; not used for comparison."""
    return f"sns.{channel_name}.queue"


def build_statement(queue_arn: str, topic_arn: str) -> Dict[str, Any]:
    """The canonical send-message statement for a (queue, topic) pair."""
    return {
        "Sid": STATEMENT_SID,
        "Effect": "Allow",
        "Principal": "*",
        "Action": [SEND_MESSAGE_ACTION],
        "Resource": queue_arn,
        "Condition": {
            "ArnEquals": {
                "aws:SourceArn": topic_arn,
            },
        },
    }


def build_policy(queue_arn: str, topic_arn: str, channel_name: str) -> Dict[str, Any]:
    """
    Build the policy document for a subscriber queue.

    Args:
        queue_arn: ARN of the subscriber queue
        topic_arn: ARN of the topic allowed to send into it
        channel_name: Subscriber channel; only used for the policy Id

    Returns:
        Policy document with exactly one statement
    """
    return {
        "Version": POLICY_VERSION,
        "Id": policy_id(channel_name),
        "Statement": [build_statement(queue_arn, topic_arn)],
    }


def _as_set(value: Union[str, List[str], None]) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    return frozenset(value)


def _normalize_principal(principal: Any) -> Any:
    if isinstance(principal, dict) and set(principal) == {"AWS"}:
        aws = principal["AWS"]
        if aws == "*" or aws == ["*"]:
            return "*"
    return principal


def normalize_statement(statement: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a statement for structural comparison.

    Sid is dropped; Action and NotAction become sets.
    """
    normalized = {key: value for key, value in statement.items() if key != "Sid"}
    for key in ("Action", "NotAction"):
        if key in normalized:
            normalized[key] = _as_set(normalized[key])
    if "Principal" in normalized:
        normalized["Principal"] = _normalize_principal(normalized["Principal"])
    return normalized


def statements_equal(a: Dict[str, Any], b: Dict[str, Any]) -> bool:
    """Structural statement equality after normalization."""
    return normalize_statement(a) == normalize_statement(b)


def policy_statements(policy: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Statements of a policy document; a single-object Statement becomes a list."""
    if not policy:
        return []
    statements = policy.get("Statement")
    if statements is None:
        return []
    if isinstance(statements, dict):
        return [statements]
    return list(statements)


def parse_policy(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse the queue's Policy attribute; None when absent or empty.

    Raises:
        ValueError: if the attribute is not valid JSON
    """
    if not raw:
        return None
    policy = json.loads(raw)
    if not isinstance(policy, dict):
        return None
    return policy


def policy_permits(policy: Optional[Dict[str, Any]], queue_arn: str, topic_arn: str) -> bool:
    """Check whether a policy already carries the canonical statement."""
    expected = build_statement(queue_arn, topic_arn)
    return any(statements_equal(statement, expected) for statement in policy_statements(policy))


def merge_statement(
    policy: Optional[Dict[str, Any]],
    queue_arn: str,
    topic_arn: str,
    channel_name: str,
) -> Dict[str, Any]:
    """
    Return a policy with the canonical statement added.

    Existing statements are kept as-is. Sids must be unique within a
    document, so a colliding Sid is suffixed with the topic name.
    """
    if not policy:
        return build_policy(queue_arn, topic_arn, channel_name)

    merged = copy.deepcopy(policy)
    statements = policy_statements(merged)

    statement = build_statement(queue_arn, topic_arn)
    existing_sids = {s.get("Sid") for s in statements}
    if statement["Sid"] in existing_sids:
        statement["Sid"] = f"{STATEMENT_SID}-{resource_name(topic_arn)}"

    statements.append(statement)
    merged["Statement"] = statements
    merged.setdefault("Version", POLICY_VERSION)
    merged.setdefault("Id", policy_id(channel_name))
    return merged


__all__ = [
    "POLICY_VERSION",
    "STATEMENT_SID",
    "SEND_MESSAGE_ACTION",
    "policy_id",
    "build_statement",
    "build_policy",
    "normalize_statement",
    "statements_equal",
    "policy_statements",
    "parse_policy",
    "policy_permits",
    "merge_statement",
]
