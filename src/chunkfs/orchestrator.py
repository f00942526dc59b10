"""Chunked upload orchestration for chunkfs.

Drives an upload end-to-end against an object store while keeping the
tracking store in step with it:

    start_upload     object store: create_multipart_upload, then tracker: create_upload
    upload_part      validate, object store: upload_part, then tracker: add_part
    complete_upload  tracker: get_status/get_parts, sort by part number,
                     object store: complete_multipart_upload, then tracker: complete_upload
    abort_upload     object store: abort_multipart_upload, then tracker: abort_upload

Arguments are validated before any object-store call. Object-store
failures propagate unchanged (already tagged with their operation name);
cleanup after a failure logs its own errors instead of raising them, so the
original error is always the one the caller sees.

While a caller awaits the object store, other callers may complete, abort
or restart the same key. Tracking records are therefore only removed after
checking, with no await in between, that they still hold the upload id the
caller started from.
"""

import asyncio
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from chunkfs import metrics
from chunkfs.errors import (
    EmptyUploadKey,
    FileEmpty,
    IncompleteUpload,
    InvalidArgument,
    InvalidPartNumber,
    InvalidTotalParts,
    NotFound,
)
from chunkfs.storage.backend import ACL, ObjectStore
from chunkfs.tracking.models import MAX_PARTS, PartRecord, UploadStatus
from chunkfs.tracking.store import SupportsPurge, UploadTracker

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def ordered_parts(parts: Iterable[PartRecord]) -> list[PartRecord]:
    """Sort parts by ascending part number, as the object store requires."""
    return sorted(parts, key=lambda p: p.part_number)


def count_parts(size: int, part_size: int) -> int:
    """Return how many parts a payload of ``size`` bytes splits into.

    Raises:
        InvalidArgument: If part_size is not positive.
        FileEmpty: If size is zero.
        InvalidTotalParts: If more than 10000 parts would be needed.
    """
    if part_size <= 0:
        raise InvalidArgument("part size must be greater than zero")
    if size <= 0:
        raise FileEmpty()

    total = -(-size // part_size)
    if total > MAX_PARTS:
        raise InvalidTotalParts()
    return total


def _validate_key(key: str) -> None:
    if not key:
        raise EmptyUploadKey()


def _validate_total_parts(total_parts: int) -> None:
    if total_parts < 1 or total_parts > MAX_PARTS:
        raise InvalidTotalParts()


@contextmanager
def _observed(operation: str) -> Iterator[None]:
    try:
        yield
    except Exception:
        metrics.record_operation(operation, "error")
        raise
    metrics.record_operation(operation, "success")


class UploadOrchestrator:
    """Runs chunked uploads against an object store, tracked by a tracker.

    Attributes:
        storage: The object store receiving the data.
        tracker: The upload tracking store.
    """

    def __init__(self, storage: ObjectStore, tracker: UploadTracker) -> None:
        self.storage = storage
        self.tracker = tracker

    async def start_upload(
        self,
        key: str,
        total_parts: int,
        content_type: str = DEFAULT_CONTENT_TYPE,
        acl: ACL = ACL.PRIVATE,
    ) -> str:
        """Start a chunked upload and begin tracking it.

        If the tracker refuses the record (e.g. the key is already being
        uploaded) the freshly created remote upload is aborted. The existing
        record for the key is left alone.

        Args:
            key: Destination object path; doubles as the upload key.
            total_parts: Number of parts that will be sent, 1..10000.
            content_type: MIME type of the final object.
            acl: Access-control setting of the final object.

        Returns:
            The object store's upload id.

        Raises:
            InvalidArgument: If the key is empty or total_parts is out of range.
            AlreadyExists: If an upload for the key is already tracked.
        """
        with _observed("start"):
            _validate_key(key)
            _validate_total_parts(total_parts)

            upload_id = await self.storage.create_multipart_upload(key, content_type, acl)
            try:
                self.tracker.create_upload(key, upload_id, total_parts)
            except Exception:
                await self._abort_remote(key, upload_id)
                raise

        metrics.upload_started()
        logger.info(
            "Started upload %s with %d part(s)",
            key,
            total_parts,
            extra={"upload_key": key, "upload_id": upload_id},
        )
        return upload_id

    async def upload_part(self, key: str, part_number: int, data: bytes) -> UploadStatus:
        """Push one chunk to the object store and record it.

        A failed part is not cleaned up; the caller may resend it or abort.

        Returns:
            The upload's status after the part was recorded.

        Raises:
            NotFound: If no upload is tracked for the key.
            InvalidPartNumber: If part_number is outside 1..total_parts.
            FileEmpty: If data is empty.
        """
        with _observed("upload_part"):
            upload_id = self.tracker.get_upload_id(key)
            status = self.tracker.get_status(key)

            _validate_total_parts(status.total_parts)
            if part_number < 1 or part_number > status.total_parts:
                raise InvalidPartNumber(part_number, status.total_parts)
            if not data:
                raise FileEmpty()

            etag = await self.storage.upload_part(key, upload_id, part_number, data)
            self.tracker.add_part(key, part_number, etag)
            status = self.tracker.get_status(key)

        metrics.record_part(len(data))
        logger.debug(
            "Stored part %d of %s (%d/%d)",
            part_number,
            key,
            status.completed_parts,
            status.total_parts,
            extra={"upload_key": key, "upload_id": upload_id, "part_number": part_number},
        )
        return status

    async def complete_upload(self, key: str) -> str:
        """Finalize a fully received upload.

        Returns:
            The URL of the assembled object.

        Raises:
            NotFound: If no upload is tracked for the key.
            IncompleteUpload: If some declared parts have not been received.
        """
        with _observed("complete"):
            status = self.tracker.get_status(key)
            if not status.is_completed:
                raise IncompleteUpload(key, status.completed_parts, status.total_parts)

            upload_id = self.tracker.get_upload_id(key)
            parts = ordered_parts(self.tracker.get_parts(key))

            try:
                await self.storage.complete_multipart_upload(key, upload_id, parts)
            except Exception:
                logger.error(
                    "Completing upload %s failed, aborting",
                    key,
                    extra={"upload_key": key, "upload_id": upload_id},
                )
                await self._cleanup(key, upload_id)
                raise

            self._release(key, upload_id, completed=True)

        logger.info(
            "Completed upload %s from %d part(s)",
            key,
            len(parts),
            extra={"upload_key": key, "upload_id": upload_id},
        )
        return self.storage.file_url(key)

    async def abort_upload(self, key: str) -> None:
        """Abort an upload. A key with no tracked upload is a no-op.

        The tracking record is removed even if the object store refuses the
        abort; the object-store error is then raised.
        """
        with _observed("abort"):
            try:
                upload_id = self.tracker.get_upload_id(key)
            except NotFound:
                logger.debug("Abort of untracked upload %s ignored", key)
                return

            try:
                await self.storage.abort_multipart_upload(key, upload_id)
            finally:
                self._release(key, upload_id)

        logger.info("Aborted upload %s", key, extra={"upload_key": key, "upload_id": upload_id})

    def get_status(self, key: str) -> UploadStatus:
        return self.tracker.get_status(key)

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
        acl: ACL = ACL.PRIVATE,
        part_size: int = 5 * 1024 * 1024,
        concurrency: int = 1,
    ) -> str:
        """Upload a whole payload as a chunked upload.

        Parts are sent with up to ``concurrency`` in flight, so they may
        reach the tracker out of order. Any failure aborts the upload and
        re-raises the first error.

        Returns:
            The URL of the assembled object.
        """
        total_parts = count_parts(len(data), part_size)
        upload_id = await self.start_upload(key, total_parts, content_type, acl)

        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def push(part_number: int, offset: int) -> None:
            async with semaphore:
                await self.upload_part(key, part_number, data[offset:offset + part_size])

        results = await asyncio.gather(
            *(
                push(part_number, offset)
                for part_number, offset in enumerate(range(0, len(data), part_size), 1)
            ),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            await self._cleanup(key, upload_id)
            raise errors[0]

        return await self.complete_upload(key)

    async def purge_stale_uploads(self) -> list[str]:
        """Drop stale tracking records and abort their remote uploads.

        Only trackers implementing ``SupportsPurge`` (the memory tracker with
        ``stale_after_seconds`` set) have anything to purge.

        Returns:
            The keys of the purged uploads.
        """
        if not isinstance(self.tracker, SupportsPurge):
            return []

        stale = self.tracker.purge_stale()
        for record in stale:
            await self._abort_remote(record.key, record.upload_id)
            metrics.upload_finished()
        return [record.key for record in stale]

    async def _abort_remote(self, key: str, upload_id: str) -> None:
        """Abort the remote upload, logging instead of raising on failure."""
        try:
            await self.storage.abort_multipart_upload(key, upload_id)
        except Exception:
            logger.warning(
                "Failed to abort remote upload %s for %s",
                upload_id,
                key,
                exc_info=True,
                extra={"upload_key": key, "upload_id": upload_id},
            )

    async def _cleanup(self, key: str, upload_id: str) -> None:
        await self._abort_remote(key, upload_id)
        self._release(key, upload_id)

    def _release(self, key: str, upload_id: str, completed: bool = False) -> bool:
        """Drop the tracking record for key if it still belongs to upload_id.

        Must not await: the id check and the removal have to run without
        another caller in between.

        Returns:
            True if this call removed the record.
        """
        try:
            current = self.tracker.get_upload_id(key)
        except NotFound:
            current = None
        if current != upload_id:
            logger.debug(
                "Upload %s no longer tracked under %s, leaving record alone",
                key,
                upload_id,
                extra={"upload_key": key, "upload_id": upload_id},
            )
            return False

        if completed:
            self.tracker.complete_upload(key)
        else:
            self.tracker.abort_upload(key)
        metrics.upload_finished()
        return True
