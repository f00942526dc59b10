"""Tests for chunkfs Prometheus metrics.

Collectors live in the global prometheus_client registry, so metrics are
initialised once and assertions compare before/after sample values.
"""

import pytest
from prometheus_client import REGISTRY

from chunkfs import metrics
from chunkfs.errors import NotFound


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestInitMetrics:
    def test_idempotent(self):
        metrics.init_metrics()
        first = metrics.upload_operations_total
        metrics.init_metrics()
        assert metrics.upload_operations_total is first

    def test_collectors_registered(self):
        metrics.init_metrics()
        names = {m.name for m in REGISTRY.collect()}
        assert "chunkfs_upload_operations" in names
        assert "chunkfs_parts_received" in names
        assert "chunkfs_bytes_uploaded" in names
        assert "chunkfs_active_uploads" in names


class TestOrchestratorMetrics:
    async def test_successful_upload_counted(self, orchestrator):
        metrics.init_metrics()
        starts = _sample("chunkfs_upload_operations_total", operation="start", status="success")
        completes = _sample("chunkfs_upload_operations_total", operation="complete", status="success")
        parts = _sample("chunkfs_parts_received_total")
        sent = _sample("chunkfs_bytes_uploaded_total")
        active = _sample("chunkfs_active_uploads")

        await orchestrator.upload("m/a.bin", b"x" * 25, part_size=10)

        assert _sample("chunkfs_upload_operations_total", operation="start", status="success") == starts + 1
        assert _sample("chunkfs_upload_operations_total", operation="complete", status="success") == completes + 1
        assert _sample("chunkfs_parts_received_total") == parts + 3
        assert _sample("chunkfs_bytes_uploaded_total") == sent + 25
        assert _sample("chunkfs_active_uploads") == active

    async def test_failed_operation_counted(self, orchestrator):
        metrics.init_metrics()
        errors = _sample("chunkfs_upload_operations_total", operation="complete", status="error")

        with pytest.raises(NotFound):
            await orchestrator.complete_upload("missing")

        assert _sample("chunkfs_upload_operations_total", operation="complete", status="error") == errors + 1
