#!/usr/bin/env python3
"""
Kafka Chat Client

Terminal chat client: every participant publishes lines to a shared Kafka
topic and sees everyone else's lines as they arrive.

Usage:
    kafka-chat [bootstrap_server]
    python -m kafka_chat.main localhost:9092
"""

import asyncio
import logging
import sys
from typing import Any, Callable, Optional, Sequence

from .config import ChatConfig
from .errors import ChatError, StartupError
from .publisher import OutboundPublisher
from .session import ChatSession
from .subscriber import InboundSubscriber
from .terminal import TerminalReader, TerminalWriter

logger = logging.getLogger(__name__)

WELCOME = "Welcome to Kafka chat!\n"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def setup_logging(config: ChatConfig) -> None:
    """Log to a file so log lines never mix with the chat prompt."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(config.log_file, mode="a")],
    )


async def run_client(
    config: ChatConfig,
    reader=None,
    writer=None,
    producer_factory: Optional[Callable[..., Any]] = None,
    consumer_factory: Optional[Callable[..., Any]] = None,
) -> None:
    """
    Connect to the broker and run one chat session.

    Args:
        config: Client configuration
        reader: Line reader (stdin when omitted)
        writer: Output writer (stdout when omitted)
        producer_factory: Optional producer factory (for testing)
        consumer_factory: Optional consumer factory (for testing)

    Raises:
        StartupError: If the producer or consumer cannot be started
        ChatError: Any failure that ended the session
    """
    reader = reader or TerminalReader()
    writer = writer or TerminalWriter()

    writer.write(WELCOME)

    publisher = OutboundPublisher(
        config.bootstrap_servers,
        config.topic,
        producer_factory=producer_factory,
    )
    subscriber = InboundSubscriber(
        config.bootstrap_servers,
        config.topic,
        consumer_factory=consumer_factory,
    )

    await publisher.start()
    try:
        await subscriber.subscribe()
    except StartupError:
        await publisher.stop()
        raise

    session = ChatSession(publisher, subscriber, reader, writer)
    await session.run()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the chat client."""
    config = ChatConfig.from_env(argv)
    setup_logging(config)
    logger.info("Starting chat client against %s", config.bootstrap_servers)

    try:
        asyncio.run(run_client(config))
    except ChatError as e:
        logger.error("Chat client failed: %s", e)
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    except (OSError, ValueError) as e:
        logger.error("Terminal I/O failed: %s", e)
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(EXIT_INTERRUPTED)

    logger.info("Chat client exited")
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
