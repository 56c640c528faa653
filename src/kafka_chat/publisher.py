"""
Outbound Publisher

Wraps the Kafka producer used to send chat lines to the shared topic.

Architecture:
    - Each publish awaits the broker acknowledgment before returning
    - No client-side timeout and no retry: a failed send is reported to
      the caller as PublishError
    - Supports dependency injection for the producer (for testability)
"""

import logging
from typing import Any, Callable, Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from .errors import PublishError, StartupError
from .protocol import DEFAULT_TOPIC, ChatMessage

logger = logging.getLogger(__name__)


async def _stop_quietly(producer) -> None:
    """Close a producer, logging rather than raising broker errors."""
    try:
        await producer.stop()
    except KafkaError as e:
        logger.warning("Error while stopping producer: %s", e)


class OutboundPublisher:
    """
    Publishes sender-keyed chat lines to the topic.

    Attributes:
        bootstrap_servers: Broker address (e.g., localhost:9092)
        topic: Topic every line is published to
    """

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str = DEFAULT_TOPIC,
        producer_factory: Optional[Callable[..., Any]] = None,
    ):
        """
        Initialize the publisher.

        Args:
            bootstrap_servers: Broker address
            topic: Topic to publish to
            producer_factory: Optional factory for creating the producer
                              (for dependency injection/testing)
        """
        self.bootstrap_servers = bootstrap_servers
        self.topic = topic
        self._producer_factory = producer_factory or AIOKafkaProducer
        self._producer = None

    @property
    def is_started(self) -> bool:
        """Check if the producer is running."""
        return self._producer is not None

    async def start(self) -> None:
        """
        Create the producer and connect it to the broker.

        Raises:
            StartupError: If the producer cannot be created or connected
        """
        logger.info("Starting producer for %s", self.bootstrap_servers)
        try:
            # Send every line immediately instead of batching
            producer = self._producer_factory(
                bootstrap_servers=self.bootstrap_servers,
                linger_ms=0,
            )
        except KafkaError as e:
            logger.error("Failed to create producer: %s", e)
            raise StartupError(
                f"Failed to create producer for {self.bootstrap_servers}: {e}"
            ) from e

        try:
            await producer.start()
        except KafkaError as e:
            logger.error("Failed to start producer: %s", e)
            await _stop_quietly(producer)
            raise StartupError(
                f"Failed to connect producer to {self.bootstrap_servers}: {e}"
            ) from e
        self._producer = producer

    async def stop(self) -> None:
        """Flush and close the producer."""
        if self._producer is None:
            return
        producer, self._producer = self._producer, None
        await _stop_quietly(producer)
        logger.info("Producer stopped")

    async def publish(self, sender: str, body: str) -> None:
        """
        Publish a chat line and wait for the broker to acknowledge it.

        Args:
            sender: Display name of the author (must be non-empty)
            body: Message text (may be empty)

        Raises:
            ValueError: If sender is empty
            PublishError: If the record cannot be encoded or the broker
                          rejects it
        """
        if not sender:
            raise ValueError("sender must be non-empty")
        if self._producer is None:
            raise PublishError("Producer is not started")

        try:
            key, value = ChatMessage(sender, body).to_record()
        except UnicodeEncodeError as e:
            raise PublishError(f"Failed to encode message: {e}") from e

        try:
            metadata = await self._producer.send_and_wait(
                self.topic, value=value, key=key
            )
        except KafkaError as e:
            logger.error("Failed to produce to '%s': %s", self.topic, e)
            raise PublishError(f"Failed to produce: {e!r}") from e

        logger.debug(
            "Published message from %s (partition=%s, offset=%s)",
            sender,
            getattr(metadata, "partition", None),
            getattr(metadata, "offset", None),
        )
