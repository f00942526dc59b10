"""Upload tracking store backends for chunkfs."""

from typing import TYPE_CHECKING

from chunkfs.tracking.models import MAX_PARTS, PartRecord, UploadRecord, UploadStatus
from chunkfs.tracking.store import UploadTracker

if TYPE_CHECKING:
    from chunkfs.config import TrackingConfig

__all__ = [
    "create_upload_tracker",
    "MAX_PARTS",
    "PartRecord",
    "UploadRecord",
    "UploadStatus",
    "UploadTracker",
]


def create_upload_tracker(config: "TrackingConfig") -> UploadTracker:
    """Create an upload tracker instance based on configuration.

    Args:
        config: The tracking configuration.

    Returns:
        A tracker instance implementing the UploadTracker protocol.

    Raises:
        ValueError: If the engine is unknown.
    """
    engine = config.engine

    if engine == "memory":
        from chunkfs.tracking.memory import MemoryUploadTracker

        return MemoryUploadTracker(stale_after_seconds=config.stale_after_seconds)

    else:
        raise ValueError(f"Unknown tracking engine: {engine}")
