"""In-memory object store for chunkfs.

Implements the ObjectStore protocol using Python dictionaries. Useful for
tests and local runs; all data is lost on exit. Chunked uploads follow S3
rules closely enough to catch ordering and integrity-tag mistakes:
completion requires ascending part numbers and ETags that match the
stored parts.
"""

import hashlib
import logging
import uuid
from collections.abc import Sequence

from chunkfs.errors import (
    InvalidPartNumber,
    MissingUploadID,
    NoCompletedParts,
    StorageOperationError,
)
from chunkfs.storage.backend import ACL
from chunkfs.tracking.models import MAX_PARTS, PartRecord

logger = logging.getLogger(__name__)


class MemoryObjectStore:
    """Object store that holds all objects in memory.

    Attributes:
        base_url: Prefix used by file_url().
    """

    def __init__(self, base_url: str = "memory://") -> None:
        self.base_url = base_url
        # path -> (data, content_type, acl)
        self._objects: dict[str, tuple[bytes, str, ACL]] = {}
        # upload_id -> (path, content_type, acl)
        self._uploads: dict[str, tuple[str, str, ACL]] = {}
        # (upload_id, part_number) -> (data, etag)
        self._parts: dict[tuple[str, int], tuple[bytes, str]] = {}

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        self._objects.clear()
        self._uploads.clear()
        self._parts.clear()

    def _require_upload(self, operation: str, path: str, upload_id: str) -> None:
        if not upload_id:
            raise MissingUploadID()
        upload = self._uploads.get(upload_id)
        if upload is None or upload[0] != path:
            raise StorageOperationError(operation, "NoSuchUpload")

    def _drop_parts(self, upload_id: str) -> None:
        for part_key in [k for k in self._parts if k[0] == upload_id]:
            del self._parts[part_key]

    # -- Whole objects -----------------------------------------------------------

    async def put(self, path: str, data: bytes, acl: ACL, content_type: str) -> None:
        self._objects[path] = (data, content_type, acl)

    async def get(self, path: str) -> tuple[bytes, str]:
        obj = self._objects.get(path)
        if obj is None:
            raise FileNotFoundError(f"Object not found: {path}")
        return obj[0], obj[1]

    async def delete(self, path: str) -> None:
        self._objects.pop(path, None)

    def file_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def acl_of(self, path: str) -> ACL:
        """Return the ACL an object was stored with."""
        return self._objects[path][2]

    def pending_uploads(self) -> list[str]:
        """Return the upload ids of chunked uploads not yet completed or aborted."""
        return list(self._uploads)

    # -- Chunked uploads ---------------------------------------------------------

    async def create_multipart_upload(self, path: str, content_type: str, acl: ACL) -> str:
        upload_id = uuid.uuid4().hex
        self._uploads[upload_id] = (path, content_type, acl)
        return upload_id

    async def abort_multipart_upload(self, path: str, upload_id: str) -> None:
        self._require_upload("storage.abort_multipart_upload", path, upload_id)
        del self._uploads[upload_id]
        self._drop_parts(upload_id)

    async def complete_multipart_upload(
        self, path: str, upload_id: str, parts: Sequence[PartRecord]
    ) -> None:
        operation = "storage.complete_multipart_upload"
        self._require_upload(operation, path, upload_id)
        if not parts:
            raise NoCompletedParts()

        chunks: list[bytes] = []
        previous = 0
        for part in parts:
            if part.part_number <= previous:
                raise StorageOperationError(operation, "InvalidPartOrder")
            previous = part.part_number

            stored = self._parts.get((upload_id, part.part_number))
            if stored is None or stored[1] != part.etag:
                raise StorageOperationError(operation, "InvalidPart")
            chunks.append(stored[0])

        _, content_type, acl = self._uploads.pop(upload_id)
        self._drop_parts(upload_id)
        self._objects[path] = (b"".join(chunks), content_type, acl)
        logger.debug("Assembled %s from %d part(s)", path, len(chunks))

    async def upload_part(
        self, path: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        self._require_upload("storage.upload_part", path, upload_id)
        if part_number < 1 or part_number > MAX_PARTS:
            raise InvalidPartNumber(part_number, MAX_PARTS)

        etag = hashlib.md5(data).hexdigest()
        self._parts[(upload_id, part_number)] = (data, etag)
        return etag
