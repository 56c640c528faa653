"""
Shared test doubles for the chat client.

The in-memory broker mimics Kafka consumer-group delivery: each group has
its own queue and every published record is appended to every group's
queue, so consumers in different groups all see the full stream while
consumers sharing a group split it.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
from aiokafka.errors import KafkaConnectionError

POLL_INTERVAL = 0.001


@dataclass
class FakeRecord:
    """Consumed record with the attributes the subscriber reads."""

    topic: str
    key: Optional[bytes]
    value: Optional[bytes]
    offset: int = 0
    partition: int = 0


@dataclass
class FakeMetadata:
    partition: int
    offset: int


class InMemoryBroker:
    """Topic log plus one delivery queue per consumer group."""

    def __init__(self):
        self.log: List[FakeRecord] = []
        self.groups: Dict[str, deque] = {}
        self.group_topics: Dict[str, List[str]] = {}
        self.producers: List["FakeProducer"] = []
        self.consumers: List["FakeConsumer"] = []

    def append(self, topic, key, value) -> FakeRecord:
        record = FakeRecord(topic, key, value, offset=len(self.log))
        self.log.append(record)
        for group_id, queue in self.groups.items():
            if topic in self.group_topics.get(group_id, []):
                queue.append(record)
        return record

    def producer_factory(self, **kwargs):
        producer = FakeProducer(self, **kwargs)
        self.producers.append(producer)
        return producer

    def consumer_factory(self, **kwargs):
        consumer = FakeConsumer(self, **kwargs)
        self.consumers.append(consumer)
        return consumer


class FakeProducer:
    """Stand-in for AIOKafkaProducer."""

    def __init__(self, broker: InMemoryBroker, **kwargs):
        self.broker = broker
        self.kwargs = kwargs
        self.started = False
        self.stopped = False
        self.send_attempts = 0
        self.fail_start_with: Optional[Exception] = None
        self.fail_send_with: Optional[Exception] = None

    async def start(self):
        if self.fail_start_with is not None:
            raise self.fail_start_with
        self.started = True

    async def stop(self):
        self.stopped = True

    async def send_and_wait(self, topic, value=None, key=None):
        self.send_attempts += 1
        if self.fail_send_with is not None:
            raise self.fail_send_with
        record = self.broker.append(topic, key, value)
        return FakeMetadata(partition=0, offset=record.offset)


class FakeConsumer:
    """Stand-in for AIOKafkaConsumer."""

    def __init__(self, broker: InMemoryBroker, **kwargs):
        self.broker = broker
        self.kwargs = kwargs
        self.group_id = kwargs.get("group_id")
        self.topics: List[str] = []
        self.started = False
        self.stopped = False
        self.fail_start_with: Optional[Exception] = None
        self.fail_get_with: Optional[Exception] = None

    def subscribe(self, topics):
        self.topics = list(topics)

    async def start(self):
        if self.fail_start_with is not None:
            raise self.fail_start_with
        # Delivery starts at subscription time, like auto_offset_reset=latest
        self.broker.groups.setdefault(self.group_id, deque())
        self.broker.group_topics[self.group_id] = self.topics
        self.started = True

    async def stop(self):
        self.stopped = True

    async def getone(self):
        while True:
            if self.fail_get_with is not None:
                raise self.fail_get_with
            queue = self.broker.groups[self.group_id]
            if queue:
                return queue.popleft()
            await asyncio.sleep(POLL_INTERVAL)


class ScriptedReader:
    """Line reader fed by the test; returns None once closed and drained."""

    def __init__(self, lines=(), closed: bool = False):
        self._lines = deque(lines)
        self.closed = closed

    def feed(self, line: str) -> None:
        self._lines.append(line)

    def close(self) -> None:
        self.closed = True

    async def readline(self):
        while True:
            if self._lines:
                return self._lines.popleft()
            if self.closed:
                return None
            await asyncio.sleep(POLL_INTERVAL)


class CollectingWriter:
    """Collects everything written, as bytes."""

    def __init__(self):
        self.output = b""

    def write(self, data) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.output += data


class FakePublisher:
    """Records publishes; can be told to fail from a given attempt."""

    def __init__(self, fail_on_attempt: Optional[int] = None, error=None):
        self.published: List[Any] = []
        self.attempts = 0
        self.stopped = False
        self._fail_on_attempt = fail_on_attempt
        self._error = error

    async def publish(self, sender, body):
        self.attempts += 1
        if self._fail_on_attempt is not None and (
            self.attempts >= self._fail_on_attempt
        ):
            raise self._error
        self.published.append((sender, body))

    async def stop(self):
        self.stopped = True


class FakeSubscriber:
    """Delivers ChatMessages or raises queued exceptions."""

    def __init__(self):
        self._items = deque()
        self.stopped = False
        self.received = 0

    def deliver(self, item) -> None:
        self._items.append(item)

    async def recv(self):
        while not self._items:
            await asyncio.sleep(POLL_INTERVAL)
        item = self._items.popleft()
        self.received += 1
        if isinstance(item, Exception):
            raise item
        return item

    async def stop(self):
        self.stopped = True


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Timed out waiting for condition")
        await asyncio.sleep(POLL_INTERVAL)


@pytest.fixture
def broker():
    return InMemoryBroker()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def unreachable_error():
    return KafkaConnectionError("Unable to bootstrap from localhost:9092")
