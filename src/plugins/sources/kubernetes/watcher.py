"""
Kubernetes ConfigMap Source - Desired connectors from labelled ConfigMaps.

Every ConfigMap in the namespace matching the label selector holds one
connector per data entry, each a JSON document ``{"name": ..., "config": {...}}``.
Changes are observed with the Kubernetes watch API:

- the first watch starts without a resourceVersion, so every existing
  ConfigMap is delivered as ADDED
- when the API server closes the watch, or the connection drops mid-stream,
  it is reopened from the last seen resourceVersion
- when that resourceVersion has expired (410 Gone) the watch starts over
"""

import asyncio
import json
import logging
import os
import ssl
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from config import KubernetesConfig
from connectors import Connector, parse_configmap
from events import ConnectorEvent, Emit, EventStream, EventType
from metrics import OperatorMetrics
from plugins.sources.base import ConnectorConfigSource

logger = logging.getLogger(__name__)

# Connection drops the API server or a load balancer causes mid-watch
RECONNECTABLE_ERRORS = (aiohttp.ClientPayloadError, aiohttp.ServerDisconnectedError)

WATCH_EVENT_TYPES = {
    "ADDED": EventType.ADDED,
    "MODIFIED": EventType.UPDATED,
    "DELETED": EventType.DELETED,
}


class KubernetesApiError(Exception):
    """Raised when the Kubernetes API responds in an unexpected way."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


class _WatchExpired(Exception):
    """The watch's resourceVersion is too old (410 Gone)."""


async def _iter_lines(response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
    # Watch events are newline-delimited and may exceed the StreamReader line limit
    buffer = b""
    async for chunk in response.content.iter_any():
        buffer += chunk
        while b"\n" in buffer:
            line, buffer = buffer.split(b"\n", 1)
            if line.strip():
                yield line
    if buffer.strip():
        yield buffer


class KubernetesConfigMapSource(ConnectorConfigSource):
    """Desired-state source backed by Kubernetes ConfigMaps."""

    def __init__(
        self,
        api_url: str,
        namespace: str,
        label_selector: str = "destination=connect",
        token: Optional[str] = None,
        ca_path: Optional[str] = None,
        metrics: Optional[OperatorMetrics] = None,
        watch_timeout: int = 600,
        queue_size: int = 256,
        reconnect_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.namespace = namespace
        self.label_selector = label_selector
        self.token = token
        self.ca_path = ca_path
        self.metrics = metrics or OperatorMetrics()
        self.watch_timeout = watch_timeout
        self.queue_size = queue_size
        self.reconnect_delay = reconnect_delay
        self.resource_version: Optional[str] = None
        self._session = session

        logger.info(
            f"Initializing ConfigMap watcher: namespace={namespace}, "
            f"label={label_selector}"
        )

    @classmethod
    def from_config(
        cls, config: KubernetesConfig, metrics: Optional[OperatorMetrics] = None
    ) -> "KubernetesConfigMapSource":
        """Build a source from configuration, using the service account if mounted."""
        token = None
        if os.path.exists(config.token_path):
            with open(config.token_path, "r") as f:
                token = f.read().strip()
        else:
            logger.warning(
                f"No service account token at {config.token_path}, "
                f"using unauthenticated requests"
            )

        ca_path = config.ca_path if os.path.exists(config.ca_path) else None

        return cls(
            api_url=config.api_url,
            namespace=config.namespace,
            label_selector=config.label_selector,
            token=token,
            ca_path=ca_path,
            metrics=metrics,
            watch_timeout=config.watch_timeout,
            queue_size=config.queue_size,
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"

            connector = None
            if self.ca_path:
                ssl_context = ssl.create_default_context(cafile=self.ca_path)
                connector = aiohttp.TCPConnector(ssl=ssl_context)

            self._session = aiohttp.ClientSession(
                headers=headers,
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=30),
            )
        return self._session

    @property
    def configmaps_url(self) -> str:
        return (
            f"{self.api_url}/api/v1/namespaces/"
            f"{quote(self.namespace, safe='')}/configmaps"
        )

    async def get_current_connectors(self) -> List[Connector]:
        session = self._get_session()
        params = {"labelSelector": self.label_selector}
        async with session.get(self.configmaps_url, params=params) as response:
            if response.status != 200:
                text = await response.text()
                raise KubernetesApiError(
                    f"Failed to list ConfigMaps: status={response.status}, "
                    f"message: {text}",
                    status=response.status,
                )
            body = await response.json()

        connectors: List[Connector] = []
        for configmap in body.get("items") or []:
            connectors.extend(parse_configmap(configmap))

        logger.info(
            f"Found {len(connectors)} connector(s) in "
            f"{len(body.get('items') or [])} ConfigMap(s)"
        )
        return connectors

    def events(self) -> EventStream:
        return EventStream(
            self._watch,
            queue_size=self.queue_size,
            name=f"configmaps/{self.namespace}",
        )

    async def _watch(self, emit: Emit) -> None:
        self.resource_version = None
        logger.info("ConfigMap watcher started")
        try:
            while True:
                try:
                    await self._watch_once(emit)
                except _WatchExpired:
                    logger.info("ConfigMap watch expired, restarting from scratch")
                    self.resource_version = None
                except RECONNECTABLE_ERRORS as e:
                    logger.warning(
                        f"ConfigMap watch connection lost: {e!r}, resuming from "
                        f"resourceVersion={self.resource_version}"
                    )
                    await asyncio.sleep(self.reconnect_delay)
        finally:
            logger.info("Closing ConfigMap watcher")

    async def _watch_once(self, emit: Emit) -> None:
        """Run one watch request until the server closes it.

        ``resource_version`` advances with every event, so a dropped
        connection resumes where it left off.
        """
        params = {
            "labelSelector": self.label_selector,
            "watch": "true",
            "allowWatchBookmarks": "true",
            "timeoutSeconds": str(self.watch_timeout),
        }
        if self.resource_version:
            params["resourceVersion"] = self.resource_version

        session = self._get_session()
        async with session.get(self.configmaps_url, params=params) as response:
            if response.status == 410:
                raise _WatchExpired()
            if response.status != 200:
                text = await response.text()
                raise KubernetesApiError(
                    f"Failed to watch ConfigMaps: status={response.status}, "
                    f"message: {text}",
                    status=response.status,
                )

            async for line in _iter_lines(response):
                watch_event = json.loads(line)
                version = await self._handle_watch_event(watch_event, emit)
                if version:
                    self.resource_version = version

        logger.debug(
            f"ConfigMap watch closed at resourceVersion={self.resource_version}"
        )

    async def _handle_watch_event(
        self, watch_event: Dict[str, Any], emit: Emit
    ) -> Optional[str]:
        """Emit connector events for one watch event; return its resourceVersion."""
        event_type = watch_event.get("type")
        obj = watch_event.get("object") or {}
        metadata = obj.get("metadata") or {}

        if event_type == "ERROR":
            if obj.get("code") == 410:
                raise _WatchExpired()
            raise KubernetesApiError(
                f"ConfigMap watch error: {obj.get('message')}", status=obj.get("code")
            )

        if event_type == "BOOKMARK":
            return metadata.get("resourceVersion")

        if event_type not in WATCH_EVENT_TYPES:
            logger.warning(f"Ignoring unknown watch event type: {event_type}")
            return None

        self.metrics.record_configmap_event()
        configmap_name = metadata.get("name")
        logger.info(f"ConfigMap {event_type.lower()}: name={configmap_name}")

        try:
            connectors = parse_configmap(obj)
        except Exception:
            logger.error(
                f"Failed to parse ConfigMap: name={configmap_name}", exc_info=True
            )
            raise

        logger.info(
            f"Parsed {len(connectors)} connector(s) from ConfigMap: "
            f"name={configmap_name}"
        )
        for connector in connectors:
            await emit(ConnectorEvent(WATCH_EVENT_TYPES[event_type], connector))

        return metadata.get("resourceVersion")

    async def close(self) -> None:
        if self._session is not None:
            logger.info("Closing Kubernetes client")
            await self._session.close()
            self._session = None
