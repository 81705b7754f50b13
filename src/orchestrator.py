"""
Orchestrator - Resolve-then-watch startup sequence.

Runs the initial reconciliation to completion and only then starts the
continuous reconciler. Failures of the continuous phase are left to the
process boundary; nothing here retries or restarts.
"""

import asyncio
import logging
from typing import Optional

from initial_reconciler import InitialReconciler, ReconcileResult
from metrics import OperatorMetrics
from plugins.clients.base import KafkaConnectClient
from plugins.sources.base import ConnectorConfigSource
from reconciler import ConnectorReconciler

logger = logging.getLogger(__name__)


class Orchestrator:
    """Sequences the initial and continuous reconcilers."""

    def __init__(
        self,
        source: ConnectorConfigSource,
        kafka_connect: KafkaConnectClient,
        metrics: Optional[OperatorMetrics] = None,
    ):
        self.initial_reconciler = InitialReconciler(source, kafka_connect, metrics)
        self.reconciler = ConnectorReconciler(source, kafka_connect, metrics)
        self.initial_result: Optional[ReconcileResult] = None

    @property
    def ready(self) -> bool:
        """True once the initial reconciliation has completed."""
        return self.initial_result is not None

    async def start(self) -> asyncio.Task:
        """
        Perform the initial reconciliation, then start watching for changes.

        Returns:
            The task running the continuous reconciler.

        Raises:
            Exception: If the initial reconciliation could not fetch the
                desired or actual state. No watching is started in that case.
        """
        await self._perform_initial_reconciliation()
        logger.info("Watching for ConfigMap changes")
        return self.reconciler.start()

    async def run(self) -> None:
        """Start and wait for the continuous reconciler to finish."""
        task = await self.start()
        await task

    async def _perform_initial_reconciliation(self) -> None:
        logger.info("Performing initial reconciliation")
        try:
            result = await self.initial_reconciler.reconcile()
        except Exception:
            logger.error("Initial reconciliation failed", exc_info=True)
            raise

        if result.failed:
            logger.warning(
                f"Initial reconciliation completed with failures: "
                f"upserted={result.upserted}, deleted={result.deleted}, "
                f"failed={result.failed}"
            )
        else:
            logger.info(
                f"Initial reconciliation completed: upserted "
                f"{len(result.upserted)}, deleted {len(result.deleted)} connector(s)"
            )
        self.initial_result = result
