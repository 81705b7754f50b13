"""
Initial Reconciler - One-shot drift correction at startup.

Changes that happened while the operator was not running are resolved by
comparing the full desired state with what Kafka Connect has:

- every desired connector is upserted so its config is in sync
- every connector in Kafka Connect without a desired definition is deleted

One bad connector never blocks the others: per-connector failures are
collected in the result instead of being raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from connectors import Connector
from metrics import OperatorMetrics
from plugins.clients.base import KafkaConnectClient
from plugins.sources.base import ConnectorConfigSource
from results import Rejected, Success, TransientFailure, Unchanged

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Names touched by an initial reconciliation, by outcome."""

    upserted: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class _Outcome:
    name: str
    success: bool


def find_orphaned_connectors(
    desired: Iterable[Connector], remote_names: Iterable[str]
) -> List[str]:
    """Return remote connector names with no desired definition, in remote order."""
    desired_names = {connector.name for connector in desired}
    return [name for name in remote_names if name not in desired_names]


class InitialReconciler:
    """Brings Kafka Connect in line with the full desired state once."""

    def __init__(
        self,
        source: ConnectorConfigSource,
        kafka_connect: KafkaConnectClient,
        metrics: Optional[OperatorMetrics] = None,
    ):
        self.source = source
        self.kafka_connect = kafka_connect
        self.metrics = metrics or OperatorMetrics()

    async def reconcile(self) -> ReconcileResult:
        """
        Upsert all desired connectors and delete orphaned ones.

        Returns:
            ReconcileResult with the upserted, deleted and failed names.

        Raises:
            Exception: Only if fetching the desired state or the Kafka Connect
                connector list fails.
        """
        logger.info("Starting initial reconciliation")

        desired = await self.source.get_current_connectors()
        remote_names = await self.kafka_connect.list_connectors()

        logger.info(
            f"Found {len(desired)} connectors in desired state, "
            f"{len(remote_names)} in Kafka Connect"
        )

        upsert_outcomes = [await self._upsert_connector(c) for c in desired]
        delete_outcomes = [
            await self._delete_connector(name)
            for name in find_orphaned_connectors(desired, remote_names)
        ]

        outcomes = upsert_outcomes + delete_outcomes
        failed = [o.name for o in outcomes if not o.success]

        logger.info(
            f"Initial reconciliation complete: "
            f"{len(outcomes) - len(failed)} succeeded, {len(failed)} failed"
        )

        return ReconcileResult(
            upserted=[o.name for o in upsert_outcomes if o.success],
            deleted=[o.name for o in delete_outcomes if o.success],
            failed=failed,
        )

    async def _upsert_connector(self, connector: Connector) -> _Outcome:
        try:
            result = await self.kafka_connect.upsert(connector)
        except Exception:
            logger.error(
                f"Exception upserting connector: {connector.name}", exc_info=True
            )
            return _Outcome(connector.name, False)

        if isinstance(result, Success):
            logger.info(f"Upserted connector: {connector.name}")
            return _Outcome(connector.name, True)
        if isinstance(result, Unchanged):
            logger.debug(f"Connector unchanged: {connector.name}")
            return _Outcome(connector.name, True)
        if isinstance(result, Rejected):
            logger.error(
                f"Connector rejected: {connector.name}, reason={result.reason}"
            )
            return _Outcome(connector.name, False)
        if isinstance(result, TransientFailure):
            logger.warning(
                f"Transient failure: {connector.name}, reason={result.reason}"
            )
            return _Outcome(connector.name, False)
        raise TypeError(f"Unhandled operation result: {result!r}")

    async def _delete_connector(self, name: str) -> _Outcome:
        try:
            result = await self.kafka_connect.delete(name)
        except Exception:
            logger.error(f"Exception deleting connector: {name}", exc_info=True)
            return _Outcome(name, False)

        if isinstance(result, Success):
            logger.info(f"Deleted orphaned connector: {name}")
            self.metrics.record_connector_deleted()
            return _Outcome(name, True)

        logger.error(f"Failed to delete orphaned connector: {name}, result={result}")
        return _Outcome(name, False)
