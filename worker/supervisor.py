# ============================================================================
# SUBSCRIBER SUPERVISOR
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Long-running consumption per subscriber channel
# PURPOSE: Keep calling consume_once until asked to stop
# CREATED: 12 OCT 2026
# ============================================================================
"""
Subscriber Supervisor

Wraps the blocking ConsumeLoop.consume_once() in one asyncio task per
subscriber channel. Each cycle runs in a worker thread, so several channels
long-poll in parallel while every batch is still processed and acknowledged
message by message inside consume_once().

A failing cycle is logged and the worker carries on after a short pause;
only a missing handler stops a worker, since no later cycle can succeed.
Each worker stops on its own stop() or on the shared shutdown event passed
to run(); stop() never touches the shared event. Stopping never interrupts a
cycle: the in-flight long poll and its batch finish first.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from core.config.defaults import RECEIVE_ALL
from core.logging import ComponentType, get_logger, log_context
from handlers.registry import HandlerError
from worker.consumer import ConsumeLoop

logger = get_logger(__name__, ComponentType.WORKER)


@dataclass
class WorkerStats:
    """Supervisor-level counters for one channel."""
    cycles: int = 0
    messages_consumed: int = 0
    cycle_errors: int = 0


class SubscriberWorker:
    """Runs consume cycles for one subscriber channel."""

    def __init__(
        self,
        consume_loop: ConsumeLoop,
        channel: str,
        max_messages: int = RECEIVE_ALL,
        error_backoff_seconds: float = 1.0,
        max_cycles: Optional[int] = None,
        worker_id: Optional[str] = None,
    ):
        """
        Args:
            consume_loop: Loop that performs each cycle
            channel: Subscriber channel to consume
            max_messages: Per-cycle message bound passed to consume_once
            error_backoff_seconds: Pause after a failed cycle
            max_cycles: Stop after this many cycles (None = until stopped)
            worker_id: Identifier for logs
        """
        self.consume_loop = consume_loop
        self.channel = channel
        self.max_messages = max_messages
        self.error_backoff_seconds = error_backoff_seconds
        self.max_cycles = max_cycles
        self.worker_id = worker_id or f"worker-{channel}"
        self.stats = WorkerStats()
        self._stopped = asyncio.Event()
        self._external_stop: Optional[asyncio.Event] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """
        Ask this worker, and only this worker, to stop after the current
        cycle. Takes effect even if called before run().
        """
        self._stopped.set()

    def _stop_requested(self) -> bool:
        if self._stopped.is_set():
            return True
        return self._external_stop is not None and self._external_stop.is_set()

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> WorkerStats:
        """
        Consume until stop_event is set, stop() is called or max_cycles
        is reached.

        Args:
            stop_event: Shared shutdown signal; never set by this worker

        Raises:
            HandlerError: if the channel has no handler
        """
        self._external_stop = stop_event
        self._running = True

        with log_context(subscriber=self.channel, worker_id=self.worker_id):
            logger.info(f"Starting consumer for channel: {self.channel}")
            try:
                while not self._stop_requested():
                    if self.max_cycles is not None and self.stats.cycles >= self.max_cycles:
                        break
                    await self._run_cycle()
            finally:
                self._running = False
                logger.info(
                    f"Consumer stopped for channel: {self.channel}",
                    extra={
                        "cycles": self.stats.cycles,
                        "messages_consumed": self.stats.messages_consumed,
                        "cycle_errors": self.stats.cycle_errors,
                    },
                )

        return self.stats

    async def _run_cycle(self) -> None:
        try:
            count = await asyncio.to_thread(
                self.consume_loop.consume_once,
                self.channel,
                None,
                self.max_messages,
            )
        except HandlerError:
            logger.error(f"No handler for channel {self.channel}, stopping worker")
            raise
        except Exception as e:
            self.stats.cycles += 1
            self.stats.cycle_errors += 1
            logger.exception(f"Consume cycle failed for {self.channel}: {e}")
            await self._pause()
            return

        self.stats.cycles += 1
        self.stats.messages_consumed += count

    async def _pause(self) -> None:
        """Back off after a failed cycle; either stop signal cuts it short."""
        events = [self._stopped]
        if self._external_stop is not None:
            events.append(self._external_stop)

        waiters = [asyncio.create_task(event.wait()) for event in events]
        try:
            await asyncio.wait(
                waiters,
                timeout=self.error_backoff_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()


async def run_workers(
    consume_loop: ConsumeLoop,
    channels: Iterable[str],
    stop_event: asyncio.Event,
    max_messages: int = RECEIVE_ALL,
    error_backoff_seconds: float = 1.0,
) -> Dict[str, WorkerStats]:
    """
    Run one SubscriberWorker per channel until stop_event is set.

    Returns:
        Final stats per channel
    """
    workers: List[SubscriberWorker] = [
        SubscriberWorker(
            consume_loop,
            channel,
            max_messages=max_messages,
            error_backoff_seconds=error_backoff_seconds,
        )
        for channel in channels
    ]
    if not workers:
        logger.warning("No subscriber channels configured")
        return {}

    logger.info(f"Running {len(workers)} subscriber workers")
    tasks = [asyncio.create_task(worker.run(stop_event)) for worker in workers]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        # One failing worker takes the others down with it
        for worker in workers:
            worker.stop()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return {worker.channel: worker.stats for worker in workers}


__all__ = [
    "WorkerStats",
    "SubscriberWorker",
    "run_workers",
]
