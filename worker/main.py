# ============================================================================
# WORKER MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Worker process entry point
# PURPOSE: Consume subscriber channels until SIGTERM/SIGINT
# CREATED: 12 OCT 2026
# ============================================================================
"""
Worker Main Entry Point

Starts a worker process that:
1. Loads handler modules (they register with @register_handler)
2. Builds SNS/SQS backends from the environment
3. Consumes each configured subscriber channel until shutdown

Usage:
    FABRIC_AWS_ACCOUNT_ID=123456789012 FABRIC_AWS_REGION=eu-west-1 \\
    FABRIC_SUBSCRIBER_CHANNELS=billing,shipping \\
    HANDLER_MODULES=myapp.handlers \\
    python -m worker.main

See core.config and worker.contracts for all environment variables.
"""

import asyncio
import importlib
import signal
import sys
from typing import List

from __version__ import __version__
from core.config import FabricConfig
from core.logging import configure_logging, get_logger
from handlers.registry import HandlerRegistry, get_default_registry
from infrastructure.aws import create_aws_backends
from worker.consumer import ConsumeLoop
from worker.contracts import WorkerSettings
from worker.supervisor import run_workers

logger = get_logger(__name__)


def load_handlers(modules: List[str]) -> int:
    """
    Import handler modules so their handlers register.

    Returns:
        Number of modules loaded

    Raises:
        ImportError: if a module cannot be imported
    """
    for module_name in modules:
        importlib.import_module(module_name)
        logger.info(f"Loaded handler module: {module_name}")
    return len(modules)


def missing_handlers(registry: HandlerRegistry, channels: List[str]) -> List[str]:
    """Channels with no registered handler."""
    return [channel for channel in channels if channel not in registry]


async def main() -> int:
    """Main entry point; returns the process exit code."""
    settings = WorkerSettings.from_env()
    configure_logging(level=settings.log_level, json_output=settings.json_logs)

    logger.info("=" * 60)
    logger.info(f"Fabric Worker Starting v{__version__}")
    logger.info("=" * 60)

    config = FabricConfig.from_env()
    logger.info(f"Worker ID: {settings.worker_id}")
    logger.info(f"Account/Region: {config.account}/{config.region}")
    logger.info(f"Channels: {settings.channels}")

    load_handlers(settings.handler_modules)
    registry = get_default_registry()
    logger.info(f"Handlers registered for: {registry.channels()}")

    missing = missing_handlers(registry, settings.channels)
    if missing:
        logger.error(f"No handler registered for channels: {missing}")
        return 1

    _, queues = create_aws_backends(config)
    consume_loop = ConsumeLoop(config, queues, registry)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler():
        logger.info("Shutdown signal received, finishing in-flight cycles")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, shutdown_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        stats = await run_workers(
            consume_loop,
            settings.channels,
            stop_event,
            max_messages=settings.max_messages,
            error_backoff_seconds=settings.error_backoff_seconds,
        )
    except Exception as e:
        logger.exception(f"Worker failed: {e}")
        return 1

    for channel, channel_stats in stats.items():
        logger.info(
            f"Channel {channel}: cycles={channel_stats.cycles}, "
            f"consumed={channel_stats.messages_consumed}, "
            f"errors={channel_stats.cycle_errors}"
        )
    logger.info("Fabric Worker stopped")
    return 0


def run() -> None:
    """Synchronous entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
