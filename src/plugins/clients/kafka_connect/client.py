"""
Kafka Connect HTTP Client - KafkaConnectClient over the Connect REST API.

Maps Kafka Connect responses onto operation results:

- 201/200 on create or update, 204 on delete -> Success
- config already identical, or deleting a connector that is gone -> Unchanged
- 400/422 (invalid configuration) -> Rejected
- 409/503 (rebalance in progress, worker starting) -> TransientFailure

Any other status raises KafkaConnectError.
"""

import json
import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import aiohttp

from connectors import Connector
from plugins.clients.base import KafkaConnectClient, KafkaConnectError
from results import (
    SUCCESS,
    UNCHANGED,
    OperationResult,
    Rejected,
    TransientFailure,
)

logger = logging.getLogger(__name__)

REJECTED_STATUSES = {400, 422}
TRANSIENT_STATUSES = {409, 503}


async def _error_message(response: aiohttp.ClientResponse) -> str:
    """Extract the ``message`` field of a Connect error body, or the raw text."""
    text = await response.text()
    try:
        body = json.loads(text)
    except ValueError:
        return text or f"HTTP {response.status}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return text


def desired_config(connector: Connector) -> Dict[str, str]:
    """Return the config Kafka Connect stores for a connector.

    Connect echoes the name back inside the stored config, so a remote config
    equal to this needs no write.
    """
    return {**connector.config, "name": connector.name}


class KafkaConnectHttpClient(KafkaConnectClient):
    """
    Kafka Connect client using aiohttp.

    A single ClientSession is created on first use and reused until
    ``close()``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Accept": "application/json"},
            )
        return self._session

    def _url(self, *parts: str) -> str:
        url = f"{self.base_url}/connectors"
        for part in parts:
            url = f"{url}/{quote(part, safe='')}"
        return url

    async def get_connector(self, name: str) -> Optional[Connector]:
        logger.debug(f"Fetching connector: name={name}")
        session = self._get_session()
        async with session.get(self._url(name)) as response:
            if response.status in (200, 404):
                return await self._read_connector(response, name)

            message = await _error_message(response)
            logger.error(
                f"Unexpected response when fetching connector: name={name}, "
                f"status={response.status}"
            )
            raise KafkaConnectError(
                f"Unexpected response status: {response.status}, message: {message}",
                status=response.status,
            )

    @staticmethod
    async def _read_connector(
        response: aiohttp.ClientResponse, name: str
    ) -> Optional[Connector]:
        if response.status == 404:
            logger.debug(f"Connector not found: name={name}")
            return None
        body = await response.json()
        logger.debug(f"Connector retrieved: name={name}")
        return Connector(name=body.get("name", name), config=body.get("config") or {})

    async def upsert(self, connector: Connector) -> OperationResult:
        session = self._get_session()
        # The existence check is classified like the write that follows it
        async with session.get(self._url(connector.name)) as response:
            if response.status not in (200, 404):
                return await self._classify_failure(response, "fetch", connector.name)
            existing = await self._read_connector(response, connector.name)

        if existing is None:
            return await self._create(connector)

        if existing.config == desired_config(connector):
            logger.debug(f"Connector config unchanged: name={connector.name}")
            return UNCHANGED
        return await self._update(connector)

    async def _create(self, connector: Connector) -> OperationResult:
        logger.debug(f"Creating new connector via POST: name={connector.name}")
        session = self._get_session()
        async with session.post(self._url(), json=connector.to_dict()) as response:
            if response.status in (200, 201):
                logger.info(f"Connector created successfully: name={connector.name}")
                return SUCCESS
            return await self._classify_failure(response, "create", connector.name)

    async def _update(self, connector: Connector) -> OperationResult:
        logger.debug(f"Updating existing connector via PUT: name={connector.name}")
        session = self._get_session()
        async with session.put(
            self._url(connector.name, "config"), json=dict(connector.config)
        ) as response:
            if response.status in (200, 201):
                logger.info(f"Connector updated successfully: name={connector.name}")
                return SUCCESS
            return await self._classify_failure(response, "update", connector.name)

    async def delete(self, name: str) -> OperationResult:
        logger.debug(f"Deleting connector: name={name}")
        session = self._get_session()
        async with session.delete(self._url(name)) as response:
            if response.status in (200, 204):
                logger.info(f"Connector deleted successfully: name={name}")
                return SUCCESS
            if response.status == 404:
                logger.info(f"Connector already absent: name={name}")
                return UNCHANGED
            return await self._classify_failure(response, "delete", name)

    async def _classify_failure(
        self, response: aiohttp.ClientResponse, operation: str, name: str
    ) -> OperationResult:
        message = await _error_message(response)
        if response.status in REJECTED_STATUSES:
            return Rejected(message)
        if response.status in TRANSIENT_STATUSES:
            return TransientFailure(message)

        logger.error(
            f"Failed to {operation} connector: name={name}, status={response.status}"
        )
        raise KafkaConnectError(
            f"Unexpected response status: {response.status}, message: {message}",
            status=response.status,
        )

    async def list_connectors(self) -> List[str]:
        session = self._get_session()
        async with session.get(self._url()) as response:
            if response.status != 200:
                message = await _error_message(response)
                raise KafkaConnectError(
                    f"Unexpected response status: {response.status}, "
                    f"message: {message}",
                    status=response.status,
                )
            names = await response.json()
        logger.debug(f"Listed {len(names)} connectors")
        return list(names)

    async def close(self) -> None:
        if self._session is not None:
            logger.info("Closing Kafka Connect client")
            await self._session.close()
            self._session = None
