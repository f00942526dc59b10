"""Data model types for chunkfs upload tracking.

``PartRecord`` and ``UploadStatus`` are immutable values handed out to
callers. ``UploadRecord`` is the mutable per-key state owned by a tracker
backend; it never leaves the backend's lock.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

# Upper bound on parts in one chunked upload (S3 limit).
MAX_PARTS = 10000


@dataclass(frozen=True)
class PartRecord:
    """A received chunk of a chunked upload.

    Attributes:
        part_number: 1-based part number.
        etag: Integrity tag returned by the object store for this chunk.
    """

    part_number: int
    etag: str


@dataclass(frozen=True)
class UploadStatus:
    """Snapshot of an upload's progress.

    Attributes:
        is_completed: True when every declared part has been received.
        total_parts: Number of parts declared at creation.
        completed_parts: Number of distinct parts received so far.
    """

    is_completed: bool
    total_parts: int
    completed_parts: int


@dataclass
class UploadRecord:
    """Tracking state for one in-flight upload.

    Attributes:
        key: Upload key (destination object path).
        upload_id: Session identifier issued by the object store.
        total_parts: Declared number of parts, fixed for the record's life.
        parts: Received parts keyed by part number.
        created_at: ``time.monotonic()`` value at creation.
    """

    key: str
    upload_id: str
    total_parts: int
    parts: dict[int, PartRecord] = field(default_factory=dict)
    created_at: float = field(default_factory=time.monotonic)

    @property
    def completed_parts(self) -> int:
        return len(self.parts)

    @property
    def is_completed(self) -> bool:
        return len(self.parts) == self.total_parts

    def status(self) -> UploadStatus:
        return UploadStatus(
            is_completed=self.is_completed,
            total_parts=self.total_parts,
            completed_parts=self.completed_parts,
        )
