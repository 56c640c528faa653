"""
Error Types for the Kafka Chat Client

Every failure that ends a chat session is raised as a subclass of
ChatError so the entry point can report it and exit with an error status.
Only the identity prompt recovers locally (empty names are re-prompted).
"""


class ChatError(Exception):
    """Base class for all chat session failures."""


class StartupError(ChatError):
    """Producer or consumer could not be created or connected."""


class IdentityError(ChatError):
    """Input closed before a display name was entered."""


class PublishError(ChatError):
    """The broker rejected or failed to accept a record."""


class RecvError(ChatError):
    """An inbound record could not be read from the broker."""


class MalformedMessage(RecvError):
    """An inbound record is missing its sender key or its body."""
