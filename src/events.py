"""
Event Streaming - Connector change events and the queue that carries them.

A watch mechanism runs as a background task and feeds a bounded
``asyncio.Queue``; the reconciler drains it one event at a time. The stream is
an async context manager so the watch is released on every exit path.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from connectors import Connector

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of connector events."""

    ADDED = "ADDED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class ConnectorEvent:
    """Event emitted when a desired-state connector changes."""

    event_type: EventType
    connector: Connector


# (emit) -> None; the watch calls emit for every event, in occurrence order
Emit = Callable[[ConnectorEvent], Awaitable[None]]
Watch = Callable[[Emit], Awaitable[None]]


class _EndOfStream:
    pass


@dataclass
class _WatchFailed:
    error: BaseException


_END_OF_STREAM = _EndOfStream()


class EventStream:
    """
    Async iterator over events produced by a background watch task.

    The watch awaits space in the queue, so a slow consumer slows the watch
    down instead of losing events. A watch that returns ends iteration; a
    watch that raises re-raises its exception in the consumer. Leaving the
    ``async with`` block cancels the watch task exactly once.
    """

    def __init__(self, watch: Watch, queue_size: int = 256, name: str = "watch"):
        self._watch = watch
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "EventStream":
        if self._task is not None:
            raise RuntimeError(f"Event stream {self._name} is not restartable")
        self._task = asyncio.create_task(self._run(), name=self._name)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    async def _run(self) -> None:
        try:
            await self._watch(self._queue.put)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Watch {self._name} failed: {e}")
            await self._queue.put(_WatchFailed(e))
        else:
            logger.info(f"Watch {self._name} ended")
            await self._queue.put(_END_OF_STREAM)

    def __aiter__(self) -> AsyncIterator[ConnectorEvent]:
        return self

    async def __anext__(self) -> ConnectorEvent:
        if self._task is None:
            raise RuntimeError(f"Event stream {self._name} has not been opened")
        if self._closed:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is _END_OF_STREAM:
            raise StopAsyncIteration
        if isinstance(item, _WatchFailed):
            raise item.error
        return item

    async def close(self) -> None:
        """Cancel the watch task and wait for its cleanup to finish."""
        if self._closed:
            return
        self._closed = True

        if self._task is not None and not self._task.done():
            logger.info(f"Closing watch {self._name}")
            self._task.cancel()
            await asyncio.wait({self._task})

    @property
    def closed(self) -> bool:
        return self._closed
