"""Unit tests for event streaming."""

import asyncio

import pytest

from connectors import Connector
from events import ConnectorEvent, EventStream, EventType

# ==================== EventType tests ====================


class TestEventType:
    """Tests for the EventType enum."""

    def test_added_value(self):
        assert EventType.ADDED.value == "ADDED"

    def test_updated_value(self):
        assert EventType.UPDATED.value == "UPDATED"

    def test_deleted_value(self):
        assert EventType.DELETED.value == "DELETED"

    def test_all_members(self):
        assert len(EventType) == 3


# ==================== ConnectorEvent tests ====================


class TestConnectorEvent:
    """Tests for the ConnectorEvent dataclass."""

    def test_fields(self):
        connector = Connector("foo", {"a": "b"})
        event = ConnectorEvent(EventType.ADDED, connector)
        assert event.event_type == EventType.ADDED
        assert event.connector is connector

    def test_equality(self):
        assert ConnectorEvent(EventType.DELETED, Connector("a")) == ConnectorEvent(
            EventType.DELETED, Connector("a")
        )


def _events(*names):
    return [ConnectorEvent(EventType.ADDED, Connector(name)) for name in names]


# ==================== EventStream tests ====================


@pytest.mark.asyncio
class TestEventStream:
    """Tests for EventStream."""

    async def test_yields_events_in_order_then_ends(self):
        expected = _events("a", "b", "c")

        async def watch(emit):
            for event in expected:
                await emit(event)

        async with EventStream(watch) as stream:
            received = [event async for event in stream]

        assert received == expected

    async def test_watch_error_is_raised_in_consumer(self):
        async def watch(emit):
            await emit(_events("a")[0])
            raise ConnectionError("watch dropped")

        received = []
        with pytest.raises(ConnectionError, match="watch dropped"):
            async with EventStream(watch) as stream:
                async for event in stream:
                    received.append(event)

        assert [e.connector.name for e in received] == ["a"]

    async def test_exit_cancels_watch_once(self):
        released = []

        async def watch(emit):
            try:
                await emit(_events("a")[0])
                await asyncio.Event().wait()
            finally:
                released.append(True)

        stream = EventStream(watch)
        async with stream:
            event = await stream.__anext__()
            assert event.connector.name == "a"

        assert released == [True]
        assert stream.closed

        await stream.close()
        assert released == [True]

    async def test_exit_on_consumer_error_releases_watch(self):
        released = []

        async def watch(emit):
            try:
                await asyncio.Event().wait()
            finally:
                released.append(True)

        with pytest.raises(RuntimeError):
            async with EventStream(watch):
                await asyncio.sleep(0)
                raise RuntimeError("consumer failed")

        assert released == [True]

    async def test_cancelling_consumer_releases_watch(self):
        released = []

        async def watch(emit):
            try:
                await asyncio.Event().wait()
            finally:
                released.append(True)

        async def consume():
            async with EventStream(watch) as stream:
                async for _ in stream:
                    pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert released == [True]

    async def test_slow_consumer_applies_back_pressure(self):
        produced = []

        async def watch(emit):
            for event in _events("a", "b", "c", "d", "e"):
                await emit(event)
                produced.append(event.connector.name)

        async with EventStream(watch, queue_size=2) as stream:
            await asyncio.sleep(0.02)
            # The watch is blocked on a full queue, nothing is dropped
            assert produced == ["a", "b"]

            received = [event.connector.name async for event in stream]

        assert received == ["a", "b", "c", "d", "e"]

    async def test_iteration_after_close_stops(self):
        async def watch(emit):
            await emit(_events("a")[0])

        stream = EventStream(watch)
        async with stream:
            pass

        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    async def test_iteration_before_open_raises(self):
        async def watch(emit):
            pass

        with pytest.raises(RuntimeError, match="has not been opened"):
            await EventStream(watch).__anext__()

    async def test_not_restartable(self):
        async def watch(emit):
            pass

        stream = EventStream(watch)
        async with stream:
            pass

        with pytest.raises(RuntimeError, match="not restartable"):
            async with stream:
                pass
