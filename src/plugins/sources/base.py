"""
Connector Config Source Base - Abstract interface for desired state.

A source provides the full set of desired connectors on demand and a live,
ordered stream of changes to them. Implementations might watch Kubernetes
ConfigMaps, a Git repository or a directory of files.
"""

from abc import ABC, abstractmethod
from typing import List

from connectors import Connector
from events import EventStream


class ConnectorConfigSource(ABC):
    """
    Abstract base class for desired-state sources.

    Events for the same connector name must be delivered in the order they
    occurred.
    """

    @abstractmethod
    def events(self) -> EventStream:
        """
        Return a new stream of connector change events.

        The stream is infinite and not restartable. It must be used as an
        async context manager so that the underlying watch is released when
        the consumer stops, including on cancellation.
        """
        pass

    @abstractmethod
    async def get_current_connectors(self) -> List[Connector]:
        """Return a snapshot of every desired connector."""
        pass

    async def close(self) -> None:
        """Release any client resources held by the source."""
        pass
