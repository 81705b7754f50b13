"""
Kafka Connect Client Base - Abstract interface to the remote connect service.

The reconcilers only talk to Kafka Connect through this interface. Every
write returns an ``OperationResult``; anything the implementation cannot
classify is raised instead.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from connectors import Connector
from results import OperationResult


class KafkaConnectError(Exception):
    """Raised when Kafka Connect responds in an unexpected way."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


class KafkaConnectClient(ABC):
    """Abstract base class for Kafka Connect clients."""

    @abstractmethod
    async def upsert(self, connector: Connector) -> OperationResult:
        """
        Create the connector if it is absent, update it if it is present.

        Whether the connector exists is decided by looking it up by name
        before writing.

        Args:
            connector: The desired connector.

        Returns:
            The classified result of the write.
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> OperationResult:
        """
        Delete a connector by name.

        Args:
            name: Connector name.

        Returns:
            The classified result of the delete.
        """
        pass

    @abstractmethod
    async def get_connector(self, name: str) -> Optional[Connector]:
        """Return the connector registered under ``name``, or None."""
        pass

    @abstractmethod
    async def list_connectors(self) -> List[str]:
        """Return the names of all connectors known to Kafka Connect."""
        pass

    async def close(self) -> None:
        """Release any connections held by the client."""
        pass
