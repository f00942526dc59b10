"""Tests for the in-memory object store."""

import hashlib

import pytest

from chunkfs.errors import InvalidPartNumber, MissingUploadID, NoCompletedParts, StorageOperationError
from chunkfs.storage.backend import ACL
from chunkfs.tracking.models import PartRecord


class TestWholeObjects:
    async def test_put_get_delete(self, storage):
        await storage.put("a.txt", b"Hello, World!", ACL.PUBLIC, "text/plain")

        data, content_type = await storage.get("a.txt")
        assert data == b"Hello, World!"
        assert content_type == "text/plain"
        assert storage.acl_of("a.txt") is ACL.PUBLIC

        await storage.delete("a.txt")
        with pytest.raises(FileNotFoundError):
            await storage.get("a.txt")

    async def test_delete_missing_is_noop(self, storage):
        await storage.delete("nope")

    async def test_file_url(self, storage):
        assert storage.file_url("x/y.png") == "memory://test/x/y.png"


class TestMultipart:
    async def test_assembles_in_part_order(self, storage):
        upload_id = await storage.create_multipart_upload("big.bin", "application/zip", ACL.PRIVATE)
        etag2 = await storage.upload_part("big.bin", upload_id, 2, b"world")
        etag1 = await storage.upload_part("big.bin", upload_id, 1, b"hello ")

        await storage.complete_multipart_upload(
            "big.bin", upload_id, [PartRecord(1, etag1), PartRecord(2, etag2)]
        )

        data, content_type = await storage.get("big.bin")
        assert data == b"hello world"
        assert content_type == "application/zip"
        assert storage.pending_uploads() == []

    async def test_etag_is_md5(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        etag = await storage.upload_part("k", upload_id, 1, b"abc")
        assert etag == hashlib.md5(b"abc").hexdigest()

    async def test_rejects_unsorted_parts(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        e1 = await storage.upload_part("k", upload_id, 1, b"a")
        e2 = await storage.upload_part("k", upload_id, 2, b"b")

        with pytest.raises(StorageOperationError, match="InvalidPartOrder"):
            await storage.complete_multipart_upload(
                "k", upload_id, [PartRecord(2, e2), PartRecord(1, e1)]
            )

    async def test_rejects_wrong_etag(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        await storage.upload_part("k", upload_id, 1, b"a")

        with pytest.raises(StorageOperationError, match="InvalidPart"):
            await storage.complete_multipart_upload("k", upload_id, [PartRecord(1, "bogus")])

    async def test_complete_requires_parts(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        with pytest.raises(NoCompletedParts):
            await storage.complete_multipart_upload("k", upload_id, [])

    async def test_unknown_upload(self, storage):
        with pytest.raises(StorageOperationError) as exc_info:
            await storage.upload_part("k", "nope", 1, b"a")
        assert exc_info.value.operation == "storage.upload_part"

    async def test_upload_id_bound_to_path(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        with pytest.raises(StorageOperationError, match="NoSuchUpload"):
            await storage.upload_part("other", upload_id, 1, b"a")

    async def test_missing_upload_id(self, storage):
        with pytest.raises(MissingUploadID):
            await storage.abort_multipart_upload("k", "")

    async def test_part_number_range(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        with pytest.raises(InvalidPartNumber):
            await storage.upload_part("k", upload_id, 0, b"a")

    async def test_abort_discards_parts(self, storage):
        upload_id = await storage.create_multipart_upload("k", "text/plain", ACL.PRIVATE)
        await storage.upload_part("k", upload_id, 1, b"a")

        await storage.abort_multipart_upload("k", upload_id)

        assert storage.pending_uploads() == []
        with pytest.raises(StorageOperationError, match="NoSuchUpload"):
            await storage.abort_multipart_upload("k", upload_id)
        with pytest.raises(FileNotFoundError):
            await storage.get("k")
