# ============================================================================
# HANDLER REGISTRY
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Handler registration and lookup
# PURPOSE: Register and discover subscriber handlers
# CREATED: 12 OCT 2026
# ============================================================================
"""
Handler Registry

Usage:
    from handlers import register_handler

    @register_handler("billing")
    def bill(message) -> bool:
        return True
"""

from handlers.registry import (
    ConsumerHandler,
    DuplicateHandlerError,
    FunctionHandler,
    HandlerError,
    HandlerFunc,
    HandlerNotFoundError,
    HandlerRegistry,
    get_default_registry,
    register_handler,
)

__all__ = [
    "ConsumerHandler",
    "FunctionHandler",
    "HandlerFunc",
    "HandlerRegistry",
    "get_default_registry",
    "register_handler",
    "HandlerError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
]
