"""Object store backends for chunkfs."""

from typing import TYPE_CHECKING

from chunkfs.storage.backend import ACL, ObjectStore

if TYPE_CHECKING:
    from chunkfs.config import StorageConfig

__all__ = [
    "ACL",
    "create_object_store",
    "ObjectStore",
]


def create_object_store(config: "StorageConfig") -> ObjectStore:
    """Create an object store instance based on configuration.

    Args:
        config: The storage configuration.

    Returns:
        An object store implementing the ObjectStore protocol. Call
        ``init()`` before use.

    Raises:
        ValueError: If the backend is unknown or required config is missing.
    """
    backend = config.backend

    if backend == "memory":
        from chunkfs.storage.memory import MemoryObjectStore

        return MemoryObjectStore()

    elif backend == "aws":
        from chunkfs.storage.aws import S3ObjectStore

        aws = config.aws
        if not aws.bucket:
            raise ValueError("storage.aws.bucket is required when backend is 'aws'")
        return S3ObjectStore(
            bucket_name=aws.bucket,
            region=aws.region,
            endpoint_url=aws.endpoint_url,
            use_path_style=aws.use_path_style,
            access_key_id=aws.access_key_id,
            secret_access_key=aws.secret_access_key,
            public_url=aws.public_url,
        )

    else:
        raise ValueError(f"Unknown storage backend: {backend}")
