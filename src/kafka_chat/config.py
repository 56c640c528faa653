"""
Client Configuration

Settings come from the environment, with command-line arguments taking
precedence.

Environment:
    KAFKA_BOOTSTRAP_SERVERS: Broker address (default: localhost:9092)
    CHAT_TOPIC: Shared topic (default: chat)
    CHAT_LOG_FILE: Log file path (default: chat_client.log)
    CHAT_LOG_LEVEL: Log level name (default: WARNING)
"""

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .protocol import DEFAULT_TOPIC

DEFAULT_BOOTSTRAP_SERVERS = "localhost:9092"
DEFAULT_LOG_FILE = "chat_client.log"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class ChatConfig:
    """
    Settings for one chat client process.

    Attributes:
        bootstrap_servers: Broker address
        topic: Topic all participants share
        log_file: File the client logs to
        log_level: Logging level name
    """

    bootstrap_servers: str = DEFAULT_BOOTSTRAP_SERVERS
    topic: str = DEFAULT_TOPIC
    log_file: str = DEFAULT_LOG_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        argv: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ChatConfig":
        """
        Build the configuration from the environment and arguments.

        Args:
            argv: Command-line arguments without the program name
                  (defaults to sys.argv[1:])
            environ: Environment mapping (defaults to os.environ)

        Returns:
            ChatConfig with arguments overriding environment values
        """
        env = os.environ if environ is None else environ
        defaults = cls(
            bootstrap_servers=env.get(
                "KAFKA_BOOTSTRAP_SERVERS", DEFAULT_BOOTSTRAP_SERVERS
            ),
            topic=env.get("CHAT_TOPIC", DEFAULT_TOPIC),
            log_file=env.get("CHAT_LOG_FILE", DEFAULT_LOG_FILE),
            log_level=env.get("CHAT_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

        args = build_parser().parse_args(argv)
        return cls(
            bootstrap_servers=args.bootstrap_server
            or defaults.bootstrap_servers,
            topic=args.topic or defaults.topic,
            log_file=args.log_file or defaults.log_file,
            log_level=(args.log_level or defaults.log_level).upper(),
        )


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="kafka-chat",
        description="Terminal chat over a Kafka topic",
    )
    parser.add_argument(
        "bootstrap_server",
        nargs="?",
        default=None,
        help=f"Kafka bootstrap server (default: {DEFAULT_BOOTSTRAP_SERVERS})",
    )
    parser.add_argument(
        "--topic",
        default=None,
        help=f"Topic to chat on (default: {DEFAULT_TOPIC})",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {DEFAULT_LOG_LEVEL})",
    )
    return parser
