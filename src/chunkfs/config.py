"""Configuration loading and Pydantic models for chunkfs."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

# S3 minimum part size for every part but the last.
DEFAULT_PART_SIZE = 5 * 1024 * 1024


class AWSStorageConfig(BaseModel):
    """Connection settings for an S3-compatible object store."""

    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    use_path_style: bool = False
    public_url: str = ""


class StorageConfig(BaseModel):
    """Object store backend configuration."""

    backend: str = "memory"
    aws: AWSStorageConfig = Field(default_factory=AWSStorageConfig)


class TrackingConfig(BaseModel):
    """Upload tracking store configuration."""

    engine: str = "memory"
    stale_after_seconds: float = 0


class UploadConfig(BaseModel):
    """Chunking defaults for whole-file uploads."""

    part_size: int = DEFAULT_PART_SIZE


class LoggingConfig(BaseModel):
    """Log level and output format."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = True


class ChunkFSConfig(BaseModel):
    """Top-level chunkfs configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def _parse_storage(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the storage section from YAML data.

    Handles nested structure: storage.aws.bucket -> aws.bucket, etc.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {"backend": data.get("backend", "memory")}

    aws_section = data.get("aws")
    if isinstance(aws_section, dict):
        result["aws"] = AWSStorageConfig(
            bucket=aws_section.get("bucket", ""),
            region=aws_section.get("region", "us-east-1"),
            endpoint_url=aws_section.get("endpoint_url", ""),
            access_key_id=aws_section.get("access_key_id", ""),
            secret_access_key=aws_section.get("secret_access_key", ""),
            use_path_style=aws_section.get("use_path_style", False),
            public_url=aws_section.get("public_url", ""),
        )

    return result


def _parse_tracking(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the tracking section from YAML data."""
    if data is None:
        return {}
    return {
        "engine": data.get("engine", "memory"),
        "stale_after_seconds": data.get("stale_after_seconds", 0),
    }


def _parse_upload(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {"part_size": data.get("part_size", DEFAULT_PART_SIZE)}


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {"enabled": data.get("enabled", True)}


def load_config(path: Path) -> ChunkFSConfig:
    """Load a ChunkFSConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated ChunkFSConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return ChunkFSConfig(
        storage=StorageConfig(**_parse_storage(raw.get("storage"))),
        tracking=TrackingConfig(**_parse_tracking(raw.get("tracking"))),
        upload=UploadConfig(**_parse_upload(raw.get("upload"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**_parse_metrics(raw.get("metrics"))),
    )
