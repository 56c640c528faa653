"""
Inbound Subscriber

Wraps the Kafka consumer that delivers chat lines from the shared topic.

Every subscriber joins its own consumer group (``chat-<uuid4>``). Kafka
balances partitions between members of one group, so a shared group would
split the stream between sessions; a fresh group per session means each
one sees every message published after it subscribed.
"""

import logging
import uuid
from typing import Any, Callable, Optional

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError

from .errors import RecvError, StartupError
from .protocol import DEFAULT_TOPIC, ChatMessage

logger = logging.getLogger(__name__)

GROUP_ID_PREFIX = "chat-"


def new_group_id() -> str:
    """Generate a consumer group id unique to this session."""
    return f"{GROUP_ID_PREFIX}{uuid.uuid4()}"


async def _stop_quietly(consumer) -> None:
    """Close a consumer, logging rather than raising broker errors."""
    try:
        await consumer.stop()
    except KafkaError as e:
        logger.warning("Error while stopping consumer: %s", e)


class InboundSubscriber:
    """
    Receives chat lines for one session.

    Attributes:
        bootstrap_servers: Broker address (e.g., localhost:9092)
        topic: Topic subscribed to
        group_id: Consumer group unique to this subscriber
    """

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str = DEFAULT_TOPIC,
        consumer_factory: Optional[Callable[..., Any]] = None,
        group_id: Optional[str] = None,
    ):
        """
        Initialize the subscriber.

        Args:
            bootstrap_servers: Broker address
            topic: Topic to subscribe to
            consumer_factory: Optional factory for creating the consumer
                              (for dependency injection/testing)
            group_id: Consumer group to join; a fresh one is generated
                      when omitted
        """
        self.bootstrap_servers = bootstrap_servers
        self.topic = topic
        self.group_id = group_id or new_group_id()
        self._consumer_factory = consumer_factory or AIOKafkaConsumer
        self._consumer = None

    @property
    def is_subscribed(self) -> bool:
        """Check if the consumer is running."""
        return self._consumer is not None

    async def subscribe(self) -> None:
        """
        Create the consumer and subscribe it to the topic.

        Only messages published from now on are delivered; there is no
        history replay.

        Raises:
            StartupError: If the consumer cannot be created or connected
        """
        logger.info(
            "Subscribing to '%s' on %s as group %s",
            self.topic,
            self.bootstrap_servers,
            self.group_id,
        )
        try:
            consumer = self._consumer_factory(
                bootstrap_servers=self.bootstrap_servers,
                group_id=self.group_id,
                auto_offset_reset="latest",
            )
            consumer.subscribe([self.topic])
        except KafkaError as e:
            logger.error("Failed to create consumer: %s", e)
            raise StartupError(
                f"Failed to create consumer for {self.bootstrap_servers}: {e}"
            ) from e

        try:
            await consumer.start()
        except KafkaError as e:
            logger.error("Failed to start consumer: %s", e)
            await _stop_quietly(consumer)
            raise StartupError(
                f"Failed to connect consumer to {self.bootstrap_servers}: {e}"
            ) from e
        self._consumer = consumer

    async def stop(self) -> None:
        """Leave the consumer group and close the consumer."""
        if self._consumer is None:
            return
        consumer, self._consumer = self._consumer, None
        await _stop_quietly(consumer)
        logger.info("Consumer stopped")

    async def recv(self) -> ChatMessage:
        """
        Wait for the next chat line.

        Returns:
            The next ChatMessage delivered to this subscriber's group

        Raises:
            RecvError: If the broker read fails or the consumer is not
                       subscribed
            MalformedMessage: If the record has no key or no value
        """
        if self._consumer is None:
            raise RecvError("Consumer is not subscribed")

        try:
            record = await self._consumer.getone()
        except KafkaError as e:
            logger.error("Failed to read message: %s", e)
            raise RecvError(f"Failed to read message: {e!r}") from e

        message = ChatMessage.from_record(record.key, record.value)
        logger.debug("Received message from %s", message.sender)
        return message
