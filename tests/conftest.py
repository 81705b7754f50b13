"""Pytest configuration and fixtures."""

import asyncio
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from connectors import Connector
from events import ConnectorEvent, EventStream, EventType
from plugins.clients.base import KafkaConnectClient
from plugins.sources.base import ConnectorConfigSource
from results import SUCCESS


class FakeSource(ConnectorConfigSource):
    """In-memory source that replays a fixed list of events."""

    def __init__(
        self,
        events: Optional[List[ConnectorEvent]] = None,
        connectors: Optional[List[Connector]] = None,
        keep_open: bool = True,
    ):
        self._events = list(events or [])
        self.connectors = list(connectors or [])
        self.keep_open = keep_open
        self.watch_released = 0
        self.emitted = 0

    def events(self) -> EventStream:
        async def watch(emit):
            try:
                for event in self._events:
                    await emit(event)
                    self.emitted += 1
                if self.keep_open:
                    await asyncio.Event().wait()
            finally:
                self.watch_released += 1

        return EventStream(watch, queue_size=4, name="fake")

    async def get_current_connectors(self) -> List[Connector]:
        return list(self.connectors)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll until predicate() is true or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.01)


def added(name: str, **config) -> ConnectorEvent:
    return ConnectorEvent(EventType.ADDED, Connector(name, config))


def updated(name: str, **config) -> ConnectorEvent:
    return ConnectorEvent(EventType.UPDATED, Connector(name, config))


def deleted(name: str) -> ConnectorEvent:
    return ConnectorEvent(EventType.DELETED, Connector(name, {}))


@pytest.fixture
def kafka_connect():
    """Create a mock Kafka Connect client where every write succeeds."""
    client = AsyncMock(spec=KafkaConnectClient)
    client.upsert.return_value = SUCCESS
    client.delete.return_value = SUCCESS
    client.list_connectors.return_value = []
    client.get_connector.return_value = None
    return client


@pytest.fixture
def sample_connector():
    """Sample connector for testing."""
    return Connector(
        name="orders-sink",
        config={
            "connector.class": "io.confluent.connect.jdbc.JdbcSinkConnector",
            "tasks.max": "1",
            "topics": "orders",
        },
    )


@pytest.fixture
def sample_configmap():
    """Sample ConfigMap holding two connectors."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": "orders-connectors",
            "namespace": "default",
            "labels": {"destination": "connect"},
            "resourceVersion": "1001",
        },
        "data": {
            "orders-sink.json": (
                '{"name": "orders-sink", "config": '
                '{"connector.class": "JdbcSinkConnector", "tasks.max": 1}}'
            ),
            "orders-source.json": (
                '{"name": "orders-source", "config": '
                '{"connector.class": "DebeziumSource", "topic.prefix": "orders"}}'
            ),
        },
    }
