"""In-memory upload tracking store for chunkfs.

Implements the UploadTracker protocol with a dict guarded by a
readers-writer lock. State lives for the lifetime of the process only.

Locking:
    - get_upload_id, get_parts, get_status, active_keys take the read side
      and may run concurrently with each other.
    - create_upload, add_part, complete_upload, abort_upload, purge_stale
      take the write side and exclude every other caller.
    - Only the ``_records`` map is touched under the lock; values handed
      back to callers are copies (frozen dataclasses or fresh lists).
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

from chunkfs.errors import AlreadyExists, EmptyUploadKey, InvalidTotalParts, NotFound
from chunkfs.tracking.models import MAX_PARTS, PartRecord, UploadRecord, UploadStatus

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """A writer-preferring readers-writer lock.

    Any number of readers may hold the lock at once. A writer waits until
    all readers have left and blocks new readers while it is waiting.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class MemoryUploadTracker:
    """Upload tracking store holding all records in memory.

    No persistence - all records are lost on restart. Abandoned uploads are
    kept until completed or aborted unless ``stale_after_seconds`` is set
    and ``purge_stale()`` is called.

    Attributes:
        stale_after_seconds: Age after which purge_stale() drops a record
            (0 = never).
    """

    def __init__(self, stale_after_seconds: float = 0) -> None:
        self.stale_after_seconds = stale_after_seconds
        self._lock = ReadWriteLock()
        self._records: dict[str, UploadRecord] = {}

    # -- Writes ----------------------------------------------------------------

    def create_upload(self, key: str, upload_id: str, total_parts: int) -> None:
        if not key:
            raise EmptyUploadKey()
        if total_parts <= 0 or total_parts > MAX_PARTS:
            raise InvalidTotalParts()

        # Built outside the lock; readers only ever see a finished record.
        record = UploadRecord(key=key, upload_id=upload_id, total_parts=total_parts)

        with self._lock.write():
            if key in self._records:
                raise AlreadyExists(key)
            self._records[key] = record

        logger.debug("Tracking upload %s (upload_id=%s, parts=%d)", key, upload_id, total_parts)

    def add_part(self, key: str, part_number: int, etag: str) -> None:
        part = PartRecord(part_number=part_number, etag=etag)
        with self._lock.write():
            record = self._records.get(key)
            if record is None:
                raise NotFound(key)
            record.parts[part_number] = part

    def complete_upload(self, key: str) -> None:
        with self._lock.write():
            if key not in self._records:
                raise NotFound(key)
            del self._records[key]

    def abort_upload(self, key: str) -> None:
        with self._lock.write():
            self._records.pop(key, None)

    def purge_stale(self) -> list[UploadRecord]:
        """Drop records older than ``stale_after_seconds``.

        Returns:
            The removed records, so the caller can abort their remote
            uploads. Always empty when ``stale_after_seconds`` is 0.
        """
        if self.stale_after_seconds <= 0:
            return []

        cutoff = time.monotonic() - self.stale_after_seconds
        with self._lock.write():
            stale = [r for r in self._records.values() if r.created_at < cutoff]
            for record in stale:
                del self._records[record.key]

        if stale:
            logger.info("Purged %d stale upload record(s)", len(stale))
        return stale

    # -- Reads -----------------------------------------------------------------

    def get_upload_id(self, key: str) -> str:
        with self._lock.read():
            record = self._records.get(key)
            if record is None:
                raise NotFound(key)
            return record.upload_id

    def get_parts(self, key: str) -> list[PartRecord]:
        with self._lock.read():
            record = self._records.get(key)
            if record is None:
                raise NotFound(key)
            return list(record.parts.values())

    def get_status(self, key: str) -> UploadStatus:
        with self._lock.read():
            record = self._records.get(key)
            if record is None:
                raise NotFound(key)
            return record.status()

    def active_keys(self) -> list[str]:
        """Return the keys of all tracked uploads, sorted."""
        with self._lock.read():
            return sorted(self._records)
