"""
Connector Reconciler - Continuous reconciliation of live desired-state changes.

Consumes the source's event stream and applies each event to Kafka Connect
as exactly one write, strictly one event at a time. Expected outcomes are
logged and counted; anything raised while applying an event stops the loop.
"""

import asyncio
import logging
from typing import Optional

from events import ConnectorEvent, EventType
from metrics import OperatorMetrics
from plugins.clients.base import KafkaConnectClient
from plugins.sources.base import ConnectorConfigSource
from results import OperationResult, Rejected, Success, TransientFailure, Unchanged

logger = logging.getLogger(__name__)


class ConnectorReconciler:
    """
    Applies connector events to Kafka Connect in the order they arrive.

    The next event is not read until the current write has returned and its
    result has been handled, so two writes for the same connector never
    overlap.
    """

    def __init__(
        self,
        source: ConnectorConfigSource,
        kafka_connect: KafkaConnectClient,
        metrics: Optional[OperatorMetrics] = None,
    ):
        self.source = source
        self.kafka_connect = kafka_connect
        self.metrics = metrics or OperatorMetrics()

    def start(self) -> asyncio.Task:
        """Run the reconciliation loop as a background task and return it."""
        return asyncio.create_task(self.run(), name="connector-reconciler")

    async def run(self) -> None:
        """
        Consume events until the stream ends, the task is cancelled, or an
        event fails with an exception.

        Raises:
            Exception: Whatever was raised while applying an event.
        """
        logger.info("ConnectorReconciler started, listening for events")
        async with self.source.events() as events:
            async for event in events:
                try:
                    await self.process_event(event)
                except Exception:
                    self.metrics.record_operation_failed()
                    logger.error(
                        f"Failed to process event: connector={event.connector.name}, "
                        f"event_type={event.event_type.value}",
                        exc_info=True,
                    )
                    raise
        logger.info("Event stream ended, ConnectorReconciler stopped")

    async def process_event(self, event: ConnectorEvent) -> None:
        """Apply a single event with one write to Kafka Connect."""
        connector = event.connector

        if event.event_type in (EventType.ADDED, EventType.UPDATED):
            action = "Creating" if event.event_type == EventType.ADDED else "Updating"
            logger.info(f"{action} connector: name={connector.name}")
            result = await self.metrics.measure(self.kafka_connect.upsert(connector))
        elif event.event_type == EventType.DELETED:
            logger.info(f"Deleting connector: name={connector.name}")
            result = await self.metrics.measure(
                self.kafka_connect.delete(connector.name)
            )
        else:
            raise ValueError(f"Unknown event type: {event.event_type}")

        self._handle_result(connector.name, event.event_type, result)

    def _handle_result(
        self, connector_name: str, event_type: EventType, result: OperationResult
    ) -> None:
        if isinstance(result, Success):
            if event_type == EventType.ADDED:
                self.metrics.record_connector_created()
                self.metrics.record_managed_connector()
            elif event_type == EventType.UPDATED:
                self.metrics.record_connector_updated()
            else:
                self.metrics.record_connector_deleted()
            logger.info(
                f"Operation completed successfully: connector={connector_name}, "
                f"result=Success"
            )
        elif isinstance(result, Unchanged):
            logger.info(
                f"No changes needed: connector={connector_name}, result=Unchanged"
            )
        elif isinstance(result, Rejected):
            self.metrics.record_operation_rejected()
            logger.error(
                f"Configuration rejected: connector={connector_name}, "
                f"reason={result.reason}"
            )
        elif isinstance(result, TransientFailure):
            # Not retried here; the next event for this connector or a restart
            # (which re-runs the initial reconciliation) repairs it
            logger.warning(
                f"Transient failure: connector={connector_name}, "
                f"reason={result.reason}"
            )
        else:
            raise TypeError(f"Unhandled operation result: {result!r}")
