# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across publisher, reconciler, worker
# CREATED: 12 OCT 2026
# ============================================================================
"""
Structured Logging

JSON or human-readable output carrying messaging context fields (channel,
subscriber, topic/queue address, message id, worker id).

Context lives in a ContextVar. Each supervisor task gets its own copy, and
asyncio.to_thread() carries it into the thread running consume_once(), so a
record logged deep inside a consume cycle still knows which worker and
subscriber it belongs to.

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger(__name__, ComponentType.CONSUMER)

    with log_context(channel="orders", subscriber="billing"):
        logger.info("Received batch", extra={"count": 3})
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union


class ComponentType(str, Enum):
    """Which part of the fabric emitted a record."""
    PUBLISHER = "publisher"
    RECONCILER = "reconciler"
    CONSUMER = "consumer"
    BACKEND = "backend"
    HANDLER = "handler"
    WORKER = "worker"


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged inside log_context()."""
    channel: Optional[str] = None
    subscriber: Optional[str] = None
    topic_arn: Optional[str] = None
    queue_url: Optional[str] = None
    message_id: Optional[str] = None
    worker_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only; extra is flattened in."""
        populated = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        populated.update(self.extra)
        return populated


_EMPTY = LogContext()
_current: ContextVar[LogContext] = ContextVar("fabric_log_context", default=_EMPTY)

_FIELD_NAMES = frozenset(f.name for f in fields(LogContext)) - {"extra"}


def get_current_context() -> LogContext:
    return _current.get()


@contextmanager
def log_context(**kwargs) -> Iterator[LogContext]:
    """
    Layer context fields over the enclosing context for a block.

    Unknown keyword arguments go into extra.

    Example:
        with log_context(subscriber="billing", message_id="abc"):
            logger.info("Dispatching to handler")
    """
    parent = _current.get()
    known = {k: v for k, v in kwargs.items() if k in _FIELD_NAMES}
    loose = {k: v for k, v in kwargs.items() if k not in _FIELD_NAMES and k != "extra"}
    loose.update(kwargs.get("extra") or {})

    layered = replace(parent, **known, extra={**parent.extra, **loose})
    token = _current.set(layered)
    try:
        yield layered
    finally:
        _current.reset(token)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "fabric", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, include_source: bool = True):
        super().__init__()
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_current_context().to_dict()
        if context:
            entry["context"] = context

        data = _record_data(record)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_source:
            entry["source"] = f"{record.module}:{record.funcName}:{record.lineno}"

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line output for a terminal."""

    # (context field, label) shown in the bracketed prefix
    SHOWN = (
        ("channel", "channel"),
        ("subscriber", "sub"),
        ("worker_id", "worker"),
        ("message_id", "msg"),
    )

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, name)}"
            for name, label in self.SHOWN
            if getattr(context, name)
        ]

        line = f"{_timestamp()} {record.levelname:<8} {record.name}"
        if tags:
            line += f" [{' '.join(tags)}]"
        line += f": {record.getMessage()}"

        data = _record_data(record)
        if data:
            line += " " + " ".join(f"{k}={v}" for k, v in data.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that stores a call's extra= dict on the record as .fabric,
    tagged with the adapter's component.
    """

    def process(self, msg, kwargs):
        data = dict(kwargs.pop("extra", None) or {})
        component = self.extra.get("component") if self.extra else None
        if component:
            data.setdefault("component", component)
        kwargs["extra"] = {"fabric": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """
    Context-aware logger for a module.

    Args:
        name: Logger name, usually __name__
        component: Component tag added to every record's data
    """
    return ContextLogger(
        logging.getLogger(name),
        {"component": component.value if component is not None else None},
    )


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Called once by the worker entry point; library code never configures
    logging itself.

    Args:
        level: Level name or number
        json_output: Emit StructuredFormatter JSON (also via LOG_FORMAT=json)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(StructuredFormatter() if use_json else HumanFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(stream)
    root.setLevel(level)

    # botocore is chatty at DEBUG
    for noisy in ("botocore", "boto3", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
]
