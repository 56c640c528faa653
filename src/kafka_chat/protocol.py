"""
Chat Message Records

This module defines how chat lines map onto broker records.

Record Format:
    Every chat line is a single Kafka record on the shared topic:
        key:   sender display name (UTF-8)
        value: message body (UTF-8, may be empty)

Inbound keys and values are decoded with the ``surrogateescape`` handler,
so decoding never fails and the original bytes are recovered exactly when
rendering or comparing senders.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import MalformedMessage

DEFAULT_TOPIC = "chat"

JOIN_ANNOUNCEMENT = "has joined the chat"

ENCODING = "utf-8"
_DECODE_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class ChatMessage:
    """
    A single chat line.

    Attributes:
        sender: Display name of the author, used as the record key
        body: The message text, used as the record value
    """

    sender: str
    body: str

    def to_record(self) -> Tuple[bytes, bytes]:
        """
        Convert to a (key, value) pair for the producer.

        Raises:
            UnicodeEncodeError: If sender or body cannot be encoded
        """
        return (
            self.sender.encode(ENCODING, _DECODE_ERRORS),
            self.body.encode(ENCODING, _DECODE_ERRORS),
        )

    @classmethod
    def from_record(
        cls, key: Optional[bytes], value: Optional[bytes]
    ) -> "ChatMessage":
        """
        Create from a consumed (key, value) pair.

        Args:
            key: Record key, the sender name
            value: Record value, the message body

        Returns:
            ChatMessage for the record

        Raises:
            MalformedMessage: If the key or value is missing
        """
        if key is None:
            raise MalformedMessage("no key for message")
        if value is None:
            raise MalformedMessage(
                f"no payload for message from {key!r}"
            )
        return cls(
            sender=key.decode(ENCODING, _DECODE_ERRORS),
            body=value.decode(ENCODING, _DECODE_ERRORS),
        )

    def is_from(self, identity: str) -> bool:
        """Check whether this message was authored by ``identity``."""
        return self.sender == identity

    def render(self) -> bytes:
        """Format for the terminal as ``\\t<sender>: <body>\\n``."""
        key, value = self.to_record()
        return b"\t" + key + b": " + value + b"\n"
