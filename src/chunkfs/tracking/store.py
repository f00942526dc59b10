"""Abstract upload tracking store protocol for chunkfs."""

from typing import Protocol, runtime_checkable

from chunkfs.tracking.models import PartRecord, UploadRecord, UploadStatus


class UploadTracker(Protocol):
    """Protocol defining the upload tracking store interface.

    All tracking backends must implement these seven operations with the
    same semantics to be interchangeable. Every operation must be safe to
    call concurrently; mutations must appear atomic to other callers.

    Errors are raised from ``chunkfs.errors``: ``InvalidArgument``,
    ``NotFound`` and ``AlreadyExists``.
    """

    def create_upload(self, key: str, upload_id: str, total_parts: int) -> None:
        """Start tracking a chunked upload.

        Args:
            key: The upload key. Must be non-empty.
            upload_id: Session identifier from the object store.
            total_parts: Declared part count, 1..10000.

        Raises:
            InvalidArgument: If the key is empty or total_parts is out of range.
            AlreadyExists: If a record for the key already exists.
        """
        ...

    def add_part(self, key: str, part_number: int, etag: str) -> None:
        """Record a received part, overwriting any earlier tag for it.

        The part number is not range-checked here.

        Args:
            key: The upload key.
            part_number: 1-based part number.
            etag: Integrity tag returned by the object store.

        Raises:
            NotFound: If no record exists for the key.
        """
        ...

    def complete_upload(self, key: str) -> None:
        """Finish tracking an upload and remove its record.

        Does not check whether all parts were received; use
        ``get_status`` for that.

        Raises:
            NotFound: If no record exists for the key.
        """
        ...

    def abort_upload(self, key: str) -> None:
        """Remove the record for the key if there is one.

        Never fails for a missing key.
        """
        ...

    def get_upload_id(self, key: str) -> str:
        """Return the object store's session identifier for the key.

        Raises:
            NotFound: If no record exists for the key.
        """
        ...

    def get_parts(self, key: str) -> list[PartRecord]:
        """Return the received parts for the key, in no particular order.

        Raises:
            NotFound: If no record exists for the key.
        """
        ...

    def get_status(self, key: str) -> UploadStatus:
        """Return a progress snapshot for the key.

        Raises:
            NotFound: If no record exists for the key.
        """
        ...


@runtime_checkable
class SupportsPurge(Protocol):
    """Optional capability: trackers that can expire abandoned uploads."""

    def purge_stale(self) -> list[UploadRecord]:
        """Remove and return records older than the tracker's staleness limit.

        Returns an empty list when expiry is disabled.
        """
        ...
