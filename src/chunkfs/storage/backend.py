"""Abstract object store protocol for chunkfs."""

from enum import Enum
from typing import Protocol, Sequence

from chunkfs.tracking.models import PartRecord


class ACL(str, Enum):
    """Canned access-control setting applied to stored objects."""

    PUBLIC = "public-read"
    PRIVATE = "private"

    def __str__(self) -> str:
        return self.value


class ObjectStore(Protocol):
    """Protocol defining the object store capability.

    The orchestrator depends on exactly these operations. Any provider with
    a chunked-upload API can back it. Failures of the remote service are
    raised as ``StorageOperationError`` tagged with the operation name.
    """

    async def init(self) -> None:
        """Connect to the object store."""
        ...

    async def close(self) -> None:
        """Release resources held by the object store."""
        ...

    async def put(self, path: str, data: bytes, acl: ACL, content_type: str) -> None:
        """Store a whole object.

        Args:
            path: Object path.
            data: The raw bytes to store.
            acl: Access-control setting for the object.
            content_type: MIME type recorded with the object.
        """
        ...

    async def get(self, path: str) -> tuple[bytes, str]:
        """Retrieve a whole object.

        Returns:
            The object bytes and its content type.

        Raises:
            FileNotFoundError: If the object does not exist.
        """
        ...

    async def delete(self, path: str) -> None:
        """Delete an object. Missing objects are not an error."""
        ...

    def file_url(self, path: str) -> str:
        """Return the public URL for an object path."""
        ...

    async def create_multipart_upload(self, path: str, content_type: str, acl: ACL) -> str:
        """Start a chunked upload.

        Returns:
            The session identifier (upload id).
        """
        ...

    async def abort_multipart_upload(self, path: str, upload_id: str) -> None:
        """Abort a chunked upload and discard its parts."""
        ...

    async def complete_multipart_upload(
        self, path: str, upload_id: str, parts: Sequence[PartRecord]
    ) -> None:
        """Assemble the uploaded parts into the final object.

        Args:
            path: Object path.
            upload_id: Session identifier from create_multipart_upload.
            parts: Received parts, ordered by ascending part number.
        """
        ...

    async def upload_part(
        self, path: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        """Upload one chunk.

        Args:
            path: Object path.
            upload_id: Session identifier from create_multipart_upload.
            part_number: 1-based part number.
            data: The chunk bytes.

        Returns:
            The integrity tag (ETag) for the chunk, unquoted.
        """
        ...
