"""
Kafka Chat Package

Terminal chat client over a publish/subscribe broker. Each session
publishes sender-keyed lines to a shared topic and receives everyone
else's lines through its own consumer group.

Modules:
    - identity: display name prompt
    - publisher: outbound producer wrapper
    - subscriber: inbound consumer wrapper
    - session: the session loop
    - terminal: non-blocking terminal input and byte output
"""

from .config import ChatConfig
from .errors import (
    ChatError,
    IdentityError,
    MalformedMessage,
    PublishError,
    RecvError,
    StartupError,
)
from .identity import IdentityResolver
from .protocol import ChatMessage
from .publisher import OutboundPublisher
from .session import ChatSession, SessionState
from .subscriber import InboundSubscriber
from .terminal import TerminalReader, TerminalWriter

__all__ = [
    # Session classes
    "ChatSession",
    "SessionState",
    "IdentityResolver",
    "OutboundPublisher",
    "InboundSubscriber",
    "TerminalReader",
    "TerminalWriter",
    "ChatConfig",
    # Records
    "ChatMessage",
    # Errors
    "ChatError",
    "StartupError",
    "IdentityError",
    "PublishError",
    "RecvError",
    "MalformedMessage",
]
