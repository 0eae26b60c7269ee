# ============================================================================
# HANDLER REGISTRY TESTS
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Tests - Handler registration
# PURPOSE: Verify channel -> handler mapping and the decorator
# CREATED: 12 OCT 2026
# ============================================================================
"""
Handler Registry Tests

Run with:
    pytest tests/test_registry.py -v
"""

import pytest

from core.models.envelope import ConsumableMessage
from handlers.registry import (
    ConsumerHandler,
    DuplicateHandlerError,
    FunctionHandler,
    HandlerNotFoundError,
    HandlerRegistry,
    register_handler,
)


class _AlwaysTrue(ConsumerHandler):
    def consume(self, message):
        return True


class TestRegistry:

    def test_register_and_get(self):
        registry = HandlerRegistry()
        handler = _AlwaysTrue()

        registry.register("billing", handler)

        assert registry.get("billing") is handler
        assert "billing" in registry
        assert len(registry) == 1
        assert registry.channels() == ["billing"]

    def test_function_wrapped(self):
        registry = HandlerRegistry()
        wrapped = registry.register("billing", lambda message: message.msg == "ok")

        assert isinstance(wrapped, FunctionHandler)
        assert wrapped.consume(ConsumableMessage(msg="ok")) is True
        assert wrapped.consume(ConsumableMessage(msg="no")) is False

    def test_duplicate_rejected(self):
        registry = HandlerRegistry({"billing": _AlwaysTrue()})

        with pytest.raises(DuplicateHandlerError) as exc_info:
            registry.register("billing", _AlwaysTrue())
        assert exc_info.value.channel == "billing"

    def test_get_or_raise(self):
        registry = HandlerRegistry()
        assert registry.get("billing") is None

        with pytest.raises(HandlerNotFoundError) as exc_info:
            registry.get_or_raise("billing")
        assert exc_info.value.channel == "billing"

    def test_not_a_handler(self):
        with pytest.raises(TypeError):
            HandlerRegistry().register("billing", 42)

    def test_clear(self):
        registry = HandlerRegistry()
        registry.register("billing", _AlwaysTrue())

        registry.clear()

        assert len(registry) == 0
        assert "billing" not in registry
        assert registry.get("billing") is None


class TestDecorator:

    def test_function(self):
        registry = HandlerRegistry()

        @register_handler("billing", registry=registry)
        def bill(message):
            return True

        assert bill(ConsumableMessage(msg=1)) is True
        assert registry.get_or_raise("billing").consume(ConsumableMessage(msg=1)) is True

    def test_class_instantiated(self):
        registry = HandlerRegistry()

        @register_handler("shipping", registry=registry)
        class ShippingHandler(ConsumerHandler):
            def consume(self, message):
                return False

        handler = registry.get_or_raise("shipping")
        assert isinstance(handler, ShippingHandler)
        assert handler.consume(ConsumableMessage(msg=1)) is False
