"""
# Service Metrics

Prometheus metrics for the MongoDB client. They are scraped from the `/metrics`
endpoint served by `mongodb_client.services.metrics_server`.

## Metric Families

- **Health gate**: `mongodb_client_health_probes_total{outcome}` counts probes,
  `mongodb_client_database_ready` is 1 once the gate opened.
- **Reconciliation**: iterations by task and outcome, duration histogram,
  in-progress gauge and last success timestamp.
- **Sample data**: `mongodb_client_sample_operations_total{operation,status}`.

## Usage Example

```python
from mongodb_client.services.metrics import service_metrics

service_metrics.record_probe(success=False)
service_metrics.record_iteration("process_loop", "success", duration=0.012)
```
"""

import time
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from mongodb_client.managers.logging_manager import get_logger

logger = get_logger(prefix="[METRICS]")


class ServiceMetrics:
    """
    Prometheus metrics for startup readiness and the reconciliation loop.

    **Metrics Types:**
    - **Counters**: health probes, reconciliation iterations, sample operations
    - **Histograms**: reconciliation iteration duration
    - **Gauges**: database readiness, iterations in progress, last success time

    Args:
        registry: Registry to register with; the process-wide default when omitted.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        registry = REGISTRY if registry is None else registry

        # Counters
        self.health_probes_total = Counter(
            "mongodb_client_health_probes_total",
            "Total number of database liveness probes",
            ["outcome"],
            registry=registry,
        )

        self.reconcile_iterations_total = Counter(
            "mongodb_client_reconcile_iterations_total",
            "Total number of reconciliation iterations",
            ["task", "outcome"],
            registry=registry,
        )

        self.sample_operations_total = Counter(
            "mongodb_client_sample_operations_total",
            "Total number of sample CRUD operations",
            ["operation", "status"],
            registry=registry,
        )

        # Histograms
        self.reconcile_duration = Histogram(
            "mongodb_client_reconcile_duration_seconds",
            "Duration of reconciliation iterations",
            ["task"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300],
            registry=registry,
        )

        # Gauges
        self.database_ready = Gauge(
            "mongodb_client_database_ready",
            "1 once the health gate has opened",
            registry=registry,
        )

        self.reconcile_running = Gauge(
            "mongodb_client_reconcile_running",
            "1 while a reconciliation iteration is in progress",
            ["task"],
            registry=registry,
        )

        self.reconcile_last_success = Gauge(
            "mongodb_client_reconcile_last_success_timestamp_seconds",
            "Unix time of the last successful reconciliation iteration",
            ["task"],
            registry=registry,
        )

        logger.debug("Service metrics registered")

    def record_probe(self, success: bool) -> None:
        self.health_probes_total.labels(outcome="success" if success else "failure").inc()
        if success:
            self.database_ready.set(1)

    def record_iteration_start(self, task: str) -> None:
        self.reconcile_running.labels(task=task).set(1)

    def record_iteration(self, task: str, outcome: str, duration: float) -> None:
        """Record a finished iteration; `outcome` is `success`, `failure`, `error` or `timeout`."""
        self.reconcile_running.labels(task=task).set(0)
        self.reconcile_iterations_total.labels(task=task, outcome=outcome).inc()
        self.reconcile_duration.labels(task=task).observe(duration)
        if outcome == "success":
            self.reconcile_last_success.labels(task=task).set(time.time())

    def record_sample_operation(self, operation: str, status: str) -> None:
        self.sample_operations_total.labels(operation=operation, status=status).inc()


# Global metrics instance
service_metrics = ServiceMetrics()
