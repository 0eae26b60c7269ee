# ============================================================================
# CONSUME LOOP
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# STATUS: Core - Subscriber queue consumption
# PURPOSE: Receive, decode, dispatch and acknowledge one batch per call
# CREATED: 12 OCT 2026
# ============================================================================
"""
Consume Loop

One consume_once() call is one bounded receive cycle on a subscriber queue:

    receive (≤10 messages, 20s long poll, 600s lease)
      └── for each message, strictly in order:
            decode → handler.consume() → True:  delete (acknowledged)
                                        False: leave (redelivered after lease)

Message lifecycle:
    received → handler success → deleted (terminal)
    received → handler failure → invisible → eligible again → received ...

"Consumed" counts every message pulled, whatever the handler said.

Failure policies (FabricConfig):
    handler raises   ISOLATE: log, leave message, continue batch (default)
                     ABORT:   re-raise, rest of batch left for redelivery
    undecodable body SKIP:    log, leave message (default)
                     DELETE:  log, delete message
"""

from dataclasses import asdict, dataclass
from typing import Dict, Optional

from core.config import FabricConfig
from core.config.defaults import RECEIVE_ALL
from core.contracts import DecodeFailurePolicy, HandlerFailurePolicy
from core.errors import EnvelopeDecodeError
from core.logging import ComponentType, get_logger, log_context
from core.models.envelope import decode_envelope, to_consumable
from core.models.topology import queue_url
from handlers.registry import ConsumerHandler, HandlerRegistry, get_default_registry
from infrastructure.backends import SENT_TIMESTAMP_ATTRIBUTE, QueueService, ReceivedMessage

logger = get_logger(__name__, ComponentType.CONSUMER)


@dataclass
class ConsumerStats:
    """Running counters for one subscriber channel."""
    cycles: int = 0
    messages_received: int = 0
    messages_acknowledged: int = 0
    messages_left: int = 0
    handler_errors: int = 0
    decode_errors: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ConsumeLoop:
    """
    Consumes subscriber queues.

    Handlers are resolved per channel from the injected registry unless
    passed explicitly to consume_once().
    """

    def __init__(
        self,
        config: FabricConfig,
        queues: QueueService,
        registry: Optional[HandlerRegistry] = None,
    ):
        """
        Initialize consume loop.

        Args:
            config: Fabric configuration (timing and failure policies)
            queues: Queue service holding the subscriber queues
            registry: Channel -> handler mapping (default registry if omitted)
        """
        self.config = config
        self._queues = queues
        self._registry = registry if registry is not None else get_default_registry()
        self._stats: Dict[str, ConsumerStats] = {}

    def stats(self, channel: str) -> ConsumerStats:
        if channel not in self._stats:
            self._stats[channel] = ConsumerStats()
        return self._stats[channel]

    def consume_once(
        self,
        subscriber_channel: str,
        handler: Optional[ConsumerHandler] = None,
        max_messages: int = RECEIVE_ALL,
    ) -> int:
        """
        Run one receive cycle on a subscriber queue.

        Args:
            subscriber_channel: Channel whose queue to read
            handler: Handler to dispatch to (registry lookup if omitted)
            max_messages: Upper bound for this cycle; -1 means the
                per-call ceiling (10)

        Returns:
            Number of messages pulled and processed; 0 when the poll
            window elapsed with no traffic

        Raises:
            HandlerNotFoundError: if no handler is given or registered
            BackendError: if receive or delete fails
        """
        if handler is None:
            handler = self._registry.get_or_raise(subscriber_channel)

        url = queue_url(self.config, subscriber_channel)
        batch_size = self.config.receive_batch_size(max_messages)
        stats = self.stats(subscriber_channel)

        with log_context(subscriber=subscriber_channel, queue_url=url, operation="consume"):
            messages = self._queues.receive(
                url,
                batch_size,
                self.config.long_poll_seconds,
                self.config.visibility_timeout_seconds,
            )
            stats.cycles += 1

            if not messages:
                logger.debug(f"No messages on {subscriber_channel}")
                return 0

            logger.debug(f"Received {len(messages)} messages on {subscriber_channel}")

            consumed = 0
            for message in messages:
                stats.messages_received += 1
                sent = message.attributes.get(SENT_TIMESTAMP_ATTRIBUTE)
                with log_context(
                    message_id=message.message_id,
                    extra={"sent_timestamp": sent} if sent else None,
                ):
                    self._process(url, handler, message, stats)
                consumed += 1

        return consumed

    def _process(
        self,
        url: str,
        handler: ConsumerHandler,
        message: ReceivedMessage,
        stats: ConsumerStats,
    ) -> None:
        try:
            envelope = decode_envelope(message.body)
        except EnvelopeDecodeError as e:
            stats.decode_errors += 1
            if self.config.decode_failure_policy == DecodeFailurePolicy.DELETE:
                logger.error(f"Deleting undecodable message {message.message_id}: {e.reason}")
                self._queues.delete(url, message.receipt_handle)
            else:
                logger.error(
                    f"Undecodable message {message.message_id} left for redelivery: {e.reason}"
                )
            return

        consumable = to_consumable(envelope, message.message_id)

        try:
            result = handler.consume(consumable)
        except Exception as e:
            stats.handler_errors += 1
            if self.config.handler_failure_policy == HandlerFailurePolicy.ABORT:
                logger.exception(f"Handler error for {message.message_id}, aborting batch: {e}")
                raise
            logger.exception(f"Handler error for {message.message_id}: {e}")
            return

        if result:
            self._queues.delete(url, message.receipt_handle)
            stats.messages_acknowledged += 1
            logger.debug(f"Acknowledged {message.message_id}")
        else:
            stats.messages_left += 1
            logger.warning(
                f"Handler declined {message.message_id}; redelivery after "
                f"{self.config.visibility_timeout_seconds}s lease"
            )


__all__ = [
    "ConsumerStats",
    "ConsumeLoop",
]
