# ============================================================================
# HANDLER REGISTRY
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Handler registration and lookup
# PURPOSE: Map subscriber channels to the handler that consumes them
# CREATED: 12 OCT 2026
# ============================================================================
"""
Handler Registry

Maps each subscriber channel to a handler object with a
consume(message) -> bool capability. The registry is injected into the
consume loop at construction; nothing is looked up by name at dispatch time
beyond this mapping.

Design:
- HandlerRegistry instances hold channel -> handler
- A module-level default registry backs the @register_handler decorator,
  so handler modules can register themselves at import time
- Fail-fast on duplicate registration
- Plain functions are wrapped in FunctionHandler

Example:
    @register_handler("billing")
    def bill(message: ConsumableMessage) -> bool:
        charge(message.msg)
        return True
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Union

from core.models.envelope import ConsumableMessage

logger = logging.getLogger(__name__)

HandlerFunc = Callable[[ConsumableMessage], Any]


# ============================================================================
# HANDLER CAPABILITY
# ============================================================================

class ConsumerHandler(ABC):
    """Business logic for one subscriber channel."""

    @abstractmethod
    def consume(self, message: ConsumableMessage) -> bool:
        """
        Process one message.

        Returns:
            True to acknowledge (delete) the message, False to leave it
            for redelivery after the visibility lease expires
        """
        pass


class FunctionHandler(ConsumerHandler):
    """Adapts a plain function to the handler capability."""

    def __init__(self, func: HandlerFunc):
        self.func = func

    def consume(self, message: ConsumableMessage) -> bool:
        return bool(self.func(message))

    def __repr__(self) -> str:
        return f"FunctionHandler({self.func.__module__}.{self.func.__name__})"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class HandlerError(Exception):
    """Base exception for handler errors."""
    pass


class HandlerNotFoundError(HandlerError):
    """Raised when no handler is registered for a channel."""
    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"No handler registered for channel: {channel}")


class DuplicateHandlerError(HandlerError):
    """Raised when a channel already has a handler."""
    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Handler already registered for channel: {channel}")


# ============================================================================
# REGISTRY
# ============================================================================

def _as_handler(handler: Union[ConsumerHandler, HandlerFunc]) -> ConsumerHandler:
    if isinstance(handler, ConsumerHandler):
        return handler
    if callable(getattr(handler, "consume", None)):
        # Duck-typed handler objects
        return handler  # type: ignore[return-value]
    if callable(handler):
        return FunctionHandler(handler)
    raise TypeError(f"Not a handler: {handler!r}")


class HandlerRegistry:
    """Channel -> handler mapping."""

    def __init__(self, handlers: Optional[Dict[str, Union[ConsumerHandler, HandlerFunc]]] = None):
        self._handlers: Dict[str, ConsumerHandler] = {}
        for channel, handler in (handlers or {}).items():
            self.register(channel, handler)

    def register(
        self,
        channel: str,
        handler: Union[ConsumerHandler, HandlerFunc],
    ) -> ConsumerHandler:
        """
        Register a handler for a subscriber channel.

        Raises:
            DuplicateHandlerError: if the channel already has a handler
        """
        if channel in self._handlers:
            raise DuplicateHandlerError(channel)

        wrapped = _as_handler(handler)
        self._handlers[channel] = wrapped
        logger.debug(f"Registered handler for {channel}: {wrapped!r}")
        return wrapped

    def get(self, channel: str) -> Optional[ConsumerHandler]:
        return self._handlers.get(channel)

    def get_or_raise(self, channel: str) -> ConsumerHandler:
        """
        Raises:
            HandlerNotFoundError: if the channel has no handler
        """
        handler = self._handlers.get(channel)
        if handler is None:
            raise HandlerNotFoundError(channel)
        return handler

    def channels(self) -> List[str]:
        return list(self._handlers)

    def clear(self) -> None:
        """Primarily for testing."""
        self._handlers.clear()

    def __contains__(self, channel: str) -> bool:
        return channel in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


# Default registry used by @register_handler
_default_registry = HandlerRegistry()


def get_default_registry() -> HandlerRegistry:
    return _default_registry


def register_handler(
    channel: str,
    *,
    registry: Optional[HandlerRegistry] = None,
) -> Callable:
    """
    Decorator to register a handler function or class for a channel.

    Classes are instantiated with no arguments.

    Example:
        @register_handler("shipping")
        class ShippingHandler(ConsumerHandler):
            def consume(self, message):
                ...
    """
    target = registry if registry is not None else _default_registry

    def decorator(obj):
        handler = obj() if inspect.isclass(obj) else obj
        target.register(channel, handler)
        return obj

    return decorator


__all__ = [
    "HandlerFunc",
    "ConsumerHandler",
    "FunctionHandler",
    "HandlerError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
    "HandlerRegistry",
    "get_default_registry",
    "register_handler",
]
