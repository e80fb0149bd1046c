"""
Prometheus metrics for the asset uploader.

Provides instrumentation for upload batches with standardized Prometheus
metrics. Tracks per-file success/failure, skipped objects, retries, bytes
sent and store API errors.

Metrics Provided:
    - upload_requests_total: Counter for per-file uploads by status
    - upload_bytes_total: Counter for bytes sent to the store
    - upload_duration_seconds: Histogram for per-file upload latency
    - upload_retries_total: Counter for re-attempted puts
    - upload_skipped_total: Counter for objects skipped by the existence check
    - store_api_errors_total: Counter for store API errors
    - batch_runs_total: Counter for batch runs by outcome

Usage:
    from asset_uploader.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload():
        response = await store.put(...)
    metrics.record_upload_success(bytes_uploaded=len(body))
"""

import os
from contextlib import nullcontext
from typing import Any, ContextManager, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from asset_uploader.utils.logging import get_logger

# Module-level logger
logger = get_logger(__name__)


class UploadMetrics:
    """
    Centralized Prometheus metrics for upload batches.

    Example:
        >>> from prometheus_client import CollectorRegistry
        >>> metrics = UploadMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload_success(bytes_uploaded=2048)
        >>> metrics.record_skipped()
    """

    def __init__(
        self, enabled: bool = True, registry: Optional[CollectorRegistry] = None
    ) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Custom Prometheus registry (uses default if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        # Counter: Per-file uploads by status (success, failure)
        self.upload_requests = Counter(
            name="upload_requests_total",
            documentation="Total number of file uploads",
            labelnames=["status"],
            registry=self.registry,
        )

        # Counter: Bytes sent (after compression)
        self.upload_bytes = Counter(
            name="upload_bytes_total",
            documentation="Total bytes uploaded to the object store",
            registry=self.registry,
        )

        # Histogram: Per-file upload duration, retries included
        self.upload_duration = Histogram(
            name="upload_duration_seconds",
            documentation="Time spent uploading one file",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry,
        )

        # Counter: Re-attempted puts
        self.upload_retries = Counter(
            name="upload_retries_total",
            documentation="Total number of retried put attempts",
            registry=self.registry,
        )

        # Counter: Objects skipped because they already exist
        self.upload_skipped = Counter(
            name="upload_skipped_total",
            documentation="Files skipped because the object already exists",
            registry=self.registry,
        )

        # Counter: Store API errors
        self.store_api_errors = Counter(
            name="store_api_errors_total",
            documentation="Total object store API errors",
            labelnames=["operation", "error_type"],  # operation: head/put
            registry=self.registry,
        )

        # Counter: Batch runs by outcome (success, failure, suppressed, empty)
        self.batch_runs = Counter(
            name="batch_runs_total",
            documentation="Total number of upload batch runs",
            labelnames=["status"],
            registry=self.registry,
        )

        logger.debug("UploadMetrics initialized with all collectors")

    def track_upload(self) -> ContextManager[Any]:
        """
        Context manager for timing one file's upload.

        Example:
            >>> with metrics.track_upload():
            ...     ...
        """
        if not self.enabled:
            return nullcontext()

        return self.upload_duration.time()

    def record_upload_success(self, bytes_uploaded: int) -> None:
        """
        Record a successful file upload.

        Args:
            bytes_uploaded: Number of bytes sent
        """
        if not self.enabled:
            return

        self.upload_requests.labels(status="success").inc()
        self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self) -> None:
        """Record a file whose upload was exhausted."""
        if not self.enabled:
            return

        self.upload_requests.labels(status="failure").inc()

    def record_retry(self) -> None:
        """Record one re-attempted put."""
        if not self.enabled:
            return

        self.upload_retries.inc()

    def record_skipped(self) -> None:
        """Record a file skipped by the existence check."""
        if not self.enabled:
            return

        self.upload_skipped.inc()

    def record_store_error(self, operation: str, error_type: str) -> None:
        """
        Record an object store API error.

        Args:
            operation: Store operation (head, put)
            error_type: Error name reported by the store (Forbidden, NotFound, ...)
        """
        if not self.enabled:
            return

        self.store_api_errors.labels(operation=operation, error_type=error_type).inc()

    def record_batch(self, status: str) -> None:
        """
        Record a finished batch run.

        Args:
            status: success, failure, suppressed or empty
        """
        if not self.enabled:
            return

        self.batch_runs.labels(status=status).inc()


# ============================================================================
# Global Metrics Instance
# ============================================================================

_metrics_instance: Optional[UploadMetrics] = None


def get_metrics() -> UploadMetrics:
    """
    Get global metrics instance (singleton).

    Collection can be turned off with METRICS_ENABLED=false.

    Returns:
        Global UploadMetrics instance
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = UploadMetrics(enabled=enabled)

    return _metrics_instance
