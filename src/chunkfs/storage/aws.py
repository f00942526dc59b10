"""S3 object store for chunkfs.

Talks to AWS S3 or any S3-compatible service (MinIO, R2, Spaces, ...) via
aiobotocore. Objects are stored at their path inside a single bucket.

Every remote failure is re-raised as ``StorageOperationError`` tagged with
the operation name (``storage.upload_part`` etc.); nothing is retried here.
Credentials fall back to the standard AWS chain (env vars,
~/.aws/credentials, IAM role) when not given explicitly.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from aiobotocore.session import AioSession
from botocore.exceptions import BotoCoreError, ClientError

from chunkfs.errors import (
    InvalidPartNumber,
    MissingUploadID,
    NoCompletedParts,
    StorageOperationError,
)
from chunkfs.storage.backend import ACL
from chunkfs.tracking.models import MAX_PARTS, PartRecord

logger = logging.getLogger(__name__)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


@contextmanager
def _wrap(operation: str) -> Iterator[None]:
    """Re-raise botocore failures as StorageOperationError."""
    try:
        yield
    except ClientError as e:
        raise StorageOperationError(operation, _error_code(e) or str(e)) from e
    except BotoCoreError as e:
        raise StorageOperationError(operation, str(e)) from e


class S3ObjectStore:
    """Object store backed by an S3 bucket.

    Attributes:
        bucket_name: The S3 bucket holding all objects.
        region: The AWS region for the bucket.
        endpoint_url: Custom endpoint for S3-compatible services.
        use_path_style: Use path-style addressing (bucket in the URL path).
        public_url: Base URL used by file_url(); defaults to the endpoint.
    """

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        endpoint_url: str = "",
        use_path_style: bool = False,
        access_key_id: str = "",
        secret_access_key: str = "",
        public_url: str = "",
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.use_path_style = use_path_style
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.public_url = public_url
        self._session = AioSession()
        self._client = None
        self._client_ctx = None

    async def init(self) -> None:
        """Create the aiobotocore S3 client and verify the bucket exists.

        Raises:
            ValueError: If the bucket does not exist or is inaccessible.
        """
        client_kwargs: dict = {"region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        if self.use_path_style:
            from botocore.config import Config as BotoConfig
            client_kwargs["config"] = BotoConfig(s3={"addressing_style": "path"})

        if self.access_key_id and self.secret_access_key:
            session = AioSession()
            session.set_credentials(self.access_key_id, self.secret_access_key)
            self._session = session
        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()

        try:
            await self._client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None
            raise ValueError(
                f"Cannot access S3 bucket '{self.bucket_name}': {_error_code(e)}"
            ) from e

        logger.info(
            "S3 object store initialized: bucket=%s region=%s endpoint='%s'",
            self.bucket_name,
            self.region,
            self.endpoint_url,
        )

    async def close(self) -> None:
        """Close the aiobotocore client session."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    # -- Whole objects -----------------------------------------------------------

    async def put(self, path: str, data: bytes, acl: ACL, content_type: str) -> None:
        with _wrap("storage.upload"):
            await self._client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ACL=str(acl),
                ContentType=content_type,
            )

    async def get(self, path: str) -> tuple[bytes, str]:
        """Download an object.

        Raises:
            FileNotFoundError: If the object does not exist.
        """
        try:
            resp = await self._client.get_object(Bucket=self.bucket_name, Key=path)
        except ClientError as e:
            if _error_code(e) in ("NoSuchKey", "404"):
                raise FileNotFoundError(f"Object not found: {path}") from e
            raise StorageOperationError("storage.download", _error_code(e)) from e

        with _wrap("storage.download"):
            async with resp["Body"] as stream:
                data = await stream.read()
        return data, resp.get("ContentType", "")

    async def delete(self, path: str) -> None:
        """Delete an object. S3 delete_object does not error on missing keys."""
        with _wrap("storage.remove"):
            await self._client.delete_object(Bucket=self.bucket_name, Key=path)

    def file_url(self, path: str) -> str:
        """Return the public URL for an object.

        Path-style: {base}/{bucket}/{path}. Virtual-host style: {base}/{path},
        where the base URL is expected to address the bucket already.
        """
        base = (self.public_url or self.endpoint_url).rstrip("/")
        if not base:
            if self.use_path_style:
                base = f"https://s3.{self.region}.amazonaws.com"
            else:
                base = f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com"

        if self.use_path_style:
            return f"{base}/{self.bucket_name}/{path}"
        return f"{base}/{path}"

    # -- Chunked uploads ---------------------------------------------------------

    async def create_multipart_upload(self, path: str, content_type: str, acl: ACL) -> str:
        with _wrap("storage.create_multipart_upload"):
            resp = await self._client.create_multipart_upload(
                Bucket=self.bucket_name,
                Key=path,
                ACL=str(acl),
                ContentType=content_type,
            )

        upload_id = resp.get("UploadId")
        if not upload_id:
            raise MissingUploadID()
        return upload_id

    async def abort_multipart_upload(self, path: str, upload_id: str) -> None:
        if not upload_id:
            raise MissingUploadID()

        with _wrap("storage.abort_multipart_upload"):
            await self._client.abort_multipart_upload(
                Bucket=self.bucket_name,
                Key=path,
                UploadId=upload_id,
            )

    async def complete_multipart_upload(
        self, path: str, upload_id: str, parts: Sequence[PartRecord]
    ) -> None:
        """Complete a chunked upload.

        Parts may have been uploaded in any order; S3 requires them in
        ascending part-number order, so they are sorted here as well.
        """
        if not upload_id:
            raise MissingUploadID()
        if not parts:
            raise NoCompletedParts()

        manifest = [
            {"ETag": p.etag, "PartNumber": p.part_number}
            for p in sorted(parts, key=lambda p: p.part_number)
        ]

        with _wrap("storage.complete_multipart_upload"):
            await self._client.complete_multipart_upload(
                Bucket=self.bucket_name,
                Key=path,
                UploadId=upload_id,
                MultipartUpload={"Parts": manifest},
            )

    async def upload_part(
        self, path: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        """Upload one chunk and return its ETag with the quotes stripped."""
        if not upload_id:
            raise MissingUploadID()
        if part_number < 1 or part_number > MAX_PARTS:
            raise InvalidPartNumber(part_number, MAX_PARTS)

        with _wrap("storage.upload_part"):
            resp = await self._client.upload_part(
                Bucket=self.bucket_name,
                Key=path,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=data,
            )
        return resp["ETag"].strip('"')
