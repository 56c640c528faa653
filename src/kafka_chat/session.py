"""
Chat Session Loop

This module drives one chat session from join to exit.

State machine:
    JOINING -> PROMPTING <-> AWAITING_EVENT -> TERMINATED

While awaiting, the session races two suspension points: the next inbound
message and the next input line. Exactly one event is handled per
iteration. The other wait is kept pending and raced again on the next
iteration, so no message or line is lost. When both are ready at once the
inbound message is handled first.

Messages authored by this session are discarded without redrawing the
prompt; the prompt was already redrawn when the publish succeeded.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from .identity import IdentityResolver
from .protocol import JOIN_ANNOUNCEMENT, ChatMessage

logger = logging.getLogger(__name__)

PROMPT = "> "


class SessionState(Enum):
    """Lifecycle states of a chat session."""

    JOINING = "joining"
    PROMPTING = "prompting"
    AWAITING_EVENT = "awaiting_event"
    TERMINATED = "terminated"


class ChatSession:
    """
    A single chat session over a publisher/subscriber pair.

    The session owns both handles for its lifetime and closes them when it
    terminates, whether cleanly or on error.

    Attributes:
        identity: Display name, set once while joining
        state: Current SessionState
        running: True until the session terminates
    """

    def __init__(
        self,
        publisher,
        subscriber,
        reader,
        writer,
        resolver: Optional[IdentityResolver] = None,
    ):
        """
        Initialize the session.

        Args:
            publisher: Started OutboundPublisher
            subscriber: Subscribed InboundSubscriber
            reader: Line reader with async ``readline()`` (None at EOF)
            writer: Output with ``write()``
            resolver: Identity resolver, a default one when omitted
        """
        self.identity: Optional[str] = None
        self.state = SessionState.JOINING
        self.running = True
        self._publisher = publisher
        self._subscriber = subscriber
        self._reader = reader
        self._writer = writer
        self._resolver = resolver or IdentityResolver()
        self._recv_task: Optional[asyncio.Future] = None
        self._input_task: Optional[asyncio.Future] = None

    async def run(self) -> None:
        """
        Run the session until input closes.

        Returns normally on end of input.

        Raises:
            IdentityError: If input closes before a name is entered
            PublishError: If a publish fails
            RecvError: If reading an inbound message fails
            MalformedMessage: If an inbound record has no key or value
        """
        try:
            await self._join()
            while self.running:
                await self._step()
        except Exception as e:
            logger.error("Session terminated with error: %s", e)
            raise
        finally:
            self.state = SessionState.TERMINATED
            self.running = False
            await self._cancel_pending()
            await self.close()
        logger.info("Session for %s ended", self.identity)

    async def close(self) -> None:
        """Release the publisher and subscriber."""
        await self._subscriber.stop()
        await self._publisher.stop()

    async def _join(self) -> None:
        self.identity = await self._resolver.resolve(
            self._reader, self._writer
        )
        await self._publisher.publish(self.identity, JOIN_ANNOUNCEMENT)
        logger.info("Joined chat as %s", self.identity)
        self.state = SessionState.PROMPTING

    async def _step(self) -> None:
        """Wait for one event and handle it."""
        if self.state is SessionState.PROMPTING:
            self._writer.write(PROMPT)
            self.state = SessionState.AWAITING_EVENT

        if self._recv_task is None:
            self._recv_task = asyncio.ensure_future(self._subscriber.recv())
        if self._input_task is None:
            self._input_task = asyncio.ensure_future(self._reader.readline())

        done, _ = await asyncio.wait(
            {self._recv_task, self._input_task},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if self._recv_task in done:
            task, self._recv_task = self._recv_task, None
            self._handle_message(task.result())
        else:
            task, self._input_task = self._input_task, None
            await self._handle_line(task.result())

    def _handle_message(self, message: ChatMessage) -> None:
        if message.is_from(self.identity):
            logger.debug("Discarding own message")
            return
        self._writer.write(message.render())
        self.state = SessionState.PROMPTING

    async def _handle_line(self, line: Optional[str]) -> None:
        if line is None:
            logger.info("Input closed, leaving chat")
            self.running = False
            self.state = SessionState.TERMINATED
            return
        await self._publisher.publish(self.identity, line)
        self.state = SessionState.PROMPTING

    async def _cancel_pending(self) -> None:
        pending = [
            task
            for task in (self._recv_task, self._input_task)
            if task is not None
        ]
        self._recv_task = None
        self._input_task = None
        for task in pending:
            task.cancel()
        # Collect results so unhandled failures are not reported twice
        await asyncio.gather(*pending, return_exceptions=True)
