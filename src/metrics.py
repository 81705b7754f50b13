"""
Operator Metrics - Counters, gauge and timer for connector operations.

``OperatorMetrics`` is the no-op capability every component accepts;
``PrometheusMetrics`` records into a ``prometheus_client`` registry that the
observability server exposes.
"""

import time
from typing import Awaitable, Optional, TypeVar

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

T = TypeVar("T")

METRIC_PREFIX = "kafka_connect_operator"


class OperatorMetrics:
    """Metrics hooks. Every method is a no-op; subclasses record."""

    def record_connector_created(self) -> None:
        pass

    def record_connector_updated(self) -> None:
        pass

    def record_connector_deleted(self) -> None:
        pass

    def record_managed_connector(self) -> None:
        pass

    def record_operation_failed(self) -> None:
        pass

    def record_operation_rejected(self) -> None:
        pass

    def record_configmap_event(self) -> None:
        pass

    async def measure(self, operation: Awaitable[T]) -> T:
        """Await an operation, timing it when it completes without raising."""
        return await operation


class PrometheusMetrics(OperatorMetrics):
    """Records operator metrics into a Prometheus collector registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self._connectors_created = Counter(
            f"{METRIC_PREFIX}_connectors_created",
            "Total number of connectors created",
            registry=self.registry,
        )
        self._connectors_updated = Counter(
            f"{METRIC_PREFIX}_connectors_updated",
            "Total number of connectors updated",
            registry=self.registry,
        )
        self._connectors_deleted = Counter(
            f"{METRIC_PREFIX}_connectors_deleted",
            "Total number of connectors deleted",
            registry=self.registry,
        )
        self._operations_failed = Counter(
            f"{METRIC_PREFIX}_operations_failed",
            "Total number of failed operations",
            registry=self.registry,
        )
        self._operations_rejected = Counter(
            f"{METRIC_PREFIX}_operations_rejected",
            "Total number of operations rejected due to invalid config",
            registry=self.registry,
        )
        self._configmap_events = Counter(
            f"{METRIC_PREFIX}_configmap_events",
            "Total number of ConfigMap events processed",
            ["event_type"],
            registry=self.registry,
        ).labels(event_type="all")
        self._operation_duration = Histogram(
            f"{METRIC_PREFIX}_operation_duration_seconds",
            "Duration of connector operations",
            registry=self.registry,
        )
        self._managed_connectors = Gauge(
            f"{METRIC_PREFIX}_managed_connectors",
            "Number of connectors managed by the operator",
            registry=self.registry,
        )

    def record_connector_created(self) -> None:
        self._connectors_created.inc()

    def record_connector_updated(self) -> None:
        self._connectors_updated.inc()

    def record_connector_deleted(self) -> None:
        self._connectors_deleted.inc()
        self._managed_connectors.dec()

    def record_managed_connector(self) -> None:
        self._managed_connectors.inc()

    def record_operation_failed(self) -> None:
        self._operations_failed.inc()

    def record_operation_rejected(self) -> None:
        self._operations_rejected.inc()

    def record_configmap_event(self) -> None:
        self._configmap_events.inc()

    async def measure(self, operation: Awaitable[T]) -> T:
        start = time.perf_counter()
        result = await operation
        self._operation_duration.observe(time.perf_counter() - start)
        return result

    @property
    def managed_connectors(self) -> float:
        """Current value of the managed-connectors gauge."""
        return self.sample(f"{METRIC_PREFIX}_managed_connectors")

    def sample(self, name: str, labels: Optional[dict] = None) -> float:
        """Read a sample value from the registry (0.0 when never recorded)."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0
