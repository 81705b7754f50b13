"""
Main entry point for the Kafka Connect Operator.

Wires the ConfigMap source, the Kafka Connect client and the metrics sink into
the orchestrator, and runs it next to the observability server.
"""

import asyncio
import logging
import signal
import sys
from typing import List, Optional

from config import Config, get_config
from metrics import PrometheusMetrics
from observability import ObservabilityServer
from orchestrator import Orchestrator
from plugins.clients.kafka_connect import KafkaConnectHttpClient
from plugins.sources.kubernetes import KubernetesConfigMapSource

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def root_cause(error: BaseException) -> BaseException:
    """Follow the exception chain to the innermost cause."""
    seen = set()
    while id(error) not in seen:
        seen.add(id(error))
        nested = error.__cause__ or error.__context__
        if nested is None:
            break
        error = nested
    return error


class Application:
    """Main application that wires and runs the operator."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.metrics: Optional[PrometheusMetrics] = None
        self.kafka_connect: Optional[KafkaConnectHttpClient] = None
        self.source: Optional[KubernetesConfigMapSource] = None
        self.orchestrator: Optional[Orchestrator] = None
        self.observability: Optional[ObservabilityServer] = None
        self._tasks: List[asyncio.Task] = []

    def initialize(self) -> None:
        """Create all components."""
        kc_config = self.config.kafka_connect
        k8s_config = self.config.kubernetes
        obs_config = self.config.observability

        logger.info("Starting Kafka Connect Operator")
        logger.info(
            f"Configuration: baseUrl={kc_config.base_url}, "
            f"namespace={k8s_config.namespace}, metricsPort={obs_config.port}"
        )

        self.metrics = PrometheusMetrics()
        self.kafka_connect = KafkaConnectHttpClient(
            kc_config.base_url, timeout=kc_config.request_timeout
        )
        self.source = KubernetesConfigMapSource.from_config(k8s_config, self.metrics)
        self.orchestrator = Orchestrator(self.source, self.kafka_connect, self.metrics)
        self.observability = ObservabilityServer(
            self.metrics.registry,
            is_ready=lambda: self.orchestrator.ready,
            host=obs_config.host,
            port=obs_config.port,
        )

    async def run(self) -> None:
        """
        Run until the reconciler stops, the server stops, or stop() is called.

        Raises:
            Exception: Whatever stopped the reconciler or the server.
        """
        if self.orchestrator is None:
            self.initialize()

        server_task = asyncio.create_task(self.observability.start())
        operator_task = asyncio.create_task(self.orchestrator.run())
        self._tasks = [server_task, operator_task]

        try:
            await asyncio.wait(self._tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            await self.stop()

        for task in (operator_task, server_task):
            if task.done() and not task.cancelled():
                error = task.exception()
                if error is not None:
                    raise error

    async def stop(self) -> None:
        """Cancel running tasks and release all resources."""
        logger.info("Shutdown initiated, cleaning up resources")
        if self.observability:
            await self.observability.stop()

        for task in self._tasks:
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.wait(self._tasks)

        if self.source:
            await self.source.close()
        if self.kafka_connect:
            await self.kafka_connect.close()
        logger.info("Shutdown completed")


async def main() -> int:
    """Main entry point. Returns the process exit code."""
    config = get_config()
    configure_logging(config.observability.log_level)

    app = Application(config)
    app.initialize()

    loop = asyncio.get_running_loop()
    current = asyncio.current_task()

    def signal_handler():
        logger.info("Received shutdown signal")
        current.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await app.run()
    except asyncio.CancelledError:
        logger.info("Operator stopped")
    except Exception as e:
        cause = root_cause(e)
        logger.error(f"Uncaught exception: {cause}", exc_info=cause)
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
