"""
Monitoring Infrastructure: Structured Logging and Metrics

Configures structlog JSON logging for the HTTP layer, the loguru sink used
by services and repositories, and the Prometheus counters describing
corpus activity.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from loguru import logger as loguru_logger
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)


def configure_structlog(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog for production logging.

    Sets up processors for:
    - Timestamping (ISO 8601)
    - Log level formatting
    - Exception formatting with stack traces
    - JSON rendering (or console rendering for local runs)
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def configure_loguru(log_level: str = "INFO", serialize: bool = True) -> None:
    """Replace the default loguru sink with one honouring the configured level."""
    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=log_level.upper(), serialize=serialize)


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    configure_structlog(log_level, log_format)
    configure_loguru(log_level, serialize=log_format == "json")


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structlog logger instance bound with a name context.

    Args:
        name: Logger name (typically module __name__)

    Returns:
        Configured structlog BoundLogger
    """
    return structlog.get_logger(name)


class MetricsCollector:
    """
    Prometheus metrics collector for corpus activity.

    Tracks:
    - Example mutations per kind and operation
    - Bulk import rows per kind and outcome
    - Statistics tier usage (primary aggregation vs degraded defaults)

    Each instance owns its registry so several collectors can coexist in
    one process.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.example_mutations_total = Counter(
            "example_mutations_total",
            "Example create/update/delete operations",
            labelnames=["kind", "operation"],
            registry=self.registry,
        )

        self.import_rows_total = Counter(
            "import_rows_total",
            "CSV rows processed by bulk import",
            labelnames=["kind", "outcome"],
            registry=self.registry,
        )

        self.stats_requests_total = Counter(
            "stats_requests_total",
            "Bulk statistics requests served, by tier",
            labelnames=["tier"],
            registry=self.registry,
        )

        self.stats_degradations_total = Counter(
            "stats_degradations_total",
            "Bulk statistics requests that fell back to default snapshots",
            labelnames=["error_type"],
            registry=self.registry,
        )

        log = get_logger(__name__)
        log.debug("metrics_collector_initialized", metrics_type="prometheus")

    def record_example_mutation(self, kind: str, operation: str) -> None:
        self.example_mutations_total.labels(kind=kind, operation=operation).inc()

    def record_import_rows(self, kind: str, imported: int, failed: int) -> None:
        """
        Record the outcome of one import.

        Args:
            kind: Example kind ("style" or "response")
            imported: Rows committed
            failed: Rows rejected
        """
        if imported:
            self.import_rows_total.labels(kind=kind, outcome="imported").inc(imported)
        if failed:
            self.import_rows_total.labels(kind=kind, outcome="failed").inc(failed)

    def record_stats_tier(self, tier: str) -> None:
        self.stats_requests_total.labels(tier=tier).inc()

    def record_stats_degradation(self, error_type: str) -> None:
        self.stats_degradations_total.labels(error_type=error_type).inc()

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Current value of a sample, 0.0 when it has not been recorded yet."""
        value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0

    def export_metrics(self) -> bytes:
        """
        Export metrics in Prometheus format.

        Returns:
            Prometheus-formatted metrics payload
        """
        return generate_latest(self.registry)

    def get_content_type(self) -> str:
        """Get content type for metrics endpoint."""
        return CONTENT_TYPE_LATEST

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Summary of recorded activity for health checks."""
        return {
            "metrics_initialized": True,
            "stats_degradations": sum(
                sample.value
                for metric in self.stats_degradations_total.collect()
                for sample in metric.samples
                if sample.name.endswith("_total")
            ),
        }


__all__ = [
    "configure_structlog",
    "configure_loguru",
    "configure_logging",
    "get_logger",
    "MetricsCollector",
]
