"""Prometheus metrics definitions for chunkfs.

All metrics use the ``chunkfs_`` prefix. Collectors are registered in the
global ``prometheus_client`` registry by ``init_metrics()``; until then the
module-level references stay ``None`` and the ``record_*`` helpers do
nothing, so metrics can be switched off in config without touching
callers.

Counters and the active-uploads gauge reset to zero on restart.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Upload operation counter  (labels: operation, status)
# ---------------------------------------------------------------------------
upload_operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Part and byte counters
# ---------------------------------------------------------------------------
parts_received_total: Counter | None = None
bytes_uploaded_total: Counter | None = None

# ---------------------------------------------------------------------------
# In-flight uploads
# ---------------------------------------------------------------------------
active_uploads: Gauge | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; only the first call registers collectors.
    """
    global _initialized
    global upload_operations_total, parts_received_total
    global bytes_uploaded_total, active_uploads

    if _initialized:
        return

    upload_operations_total = Counter(
        "chunkfs_upload_operations_total",
        "Total chunked-upload operations by type and outcome",
        ["operation", "status"],
    )

    parts_received_total = Counter(
        "chunkfs_parts_received_total",
        "Total parts accepted by the object store and tracked",
    )

    bytes_uploaded_total = Counter(
        "chunkfs_bytes_uploaded_total",
        "Total bytes pushed to the object store as parts",
    )

    active_uploads = Gauge(
        "chunkfs_active_uploads",
        "Number of chunked uploads started and not yet completed or aborted",
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    if upload_operations_total is not None:
        upload_operations_total.labels(operation=operation, status=status).inc()


def record_part(size: int) -> None:
    if parts_received_total is not None:
        parts_received_total.inc()
    if bytes_uploaded_total is not None:
        bytes_uploaded_total.inc(size)


def upload_started() -> None:
    if active_uploads is not None:
        active_uploads.inc()


def upload_finished() -> None:
    if active_uploads is not None:
        active_uploads.dec()
