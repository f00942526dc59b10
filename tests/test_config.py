"""Tests for chunkfs configuration loading and backend factories."""

import tempfile
from pathlib import Path

import pytest
import yaml

from chunkfs.config import (
    DEFAULT_PART_SIZE,
    ChunkFSConfig,
    StorageConfig,
    TrackingConfig,
    load_config,
)
from chunkfs.storage import create_object_store
from chunkfs.storage.aws import S3ObjectStore
from chunkfs.storage.memory import MemoryObjectStore
from chunkfs.tracking import create_upload_tracker
from chunkfs.tracking.memory import MemoryUploadTracker


def _write_yaml(data) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        f.flush()
        return Path(f.name)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_example_config(self):
        """Loading the example config file populates all fields."""
        config = load_config(Path(__file__).resolve().parent.parent / "chunkfs.example.yaml")
        assert config.storage.backend == "aws"
        assert config.storage.aws.bucket == "uploads"
        assert config.storage.aws.endpoint_url == "http://localhost:9000"
        assert config.storage.aws.use_path_style is True
        assert config.tracking.engine == "memory"
        assert config.tracking.stale_after_seconds == 86400
        assert config.upload.part_size == 8 * 1024 * 1024
        assert config.logging.format == "json"
        assert config.metrics.enabled is True

    def test_load_minimal_config(self):
        """Loading an empty YAML uses defaults for all fields."""
        config = load_config(_write_yaml({}))
        assert config.storage.backend == "memory"
        assert config.tracking.engine == "memory"
        assert config.tracking.stale_after_seconds == 0
        assert config.upload.part_size == DEFAULT_PART_SIZE
        assert config.logging.level == "INFO"
        assert config.logging.format == "text"

    def test_nested_aws_section(self):
        config = load_config(
            _write_yaml(
                {
                    "storage": {
                        "backend": "aws",
                        "aws": {"bucket": "b", "region": "eu-west-1", "public_url": "https://cdn"},
                    }
                }
            )
        )
        assert config.storage.aws.bucket == "b"
        assert config.storage.aws.region == "eu-west-1"
        assert config.storage.aws.public_url == "https://cdn"
        assert config.storage.aws.use_path_style is False

    def test_logging_and_metrics_sections(self):
        config = load_config(
            _write_yaml({"logging": {"level": "DEBUG"}, "metrics": {"enabled": False}})
        )
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"
        assert config.metrics.enabled is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_defaults_instance(self):
        config = ChunkFSConfig()
        assert config.storage.backend == "memory"
        assert config.upload.part_size == 5 * 1024 * 1024


class TestFactories:
    """Tests for create_object_store() and create_upload_tracker()."""

    def test_memory_object_store(self):
        assert isinstance(create_object_store(StorageConfig()), MemoryObjectStore)

    def test_aws_object_store(self):
        config = StorageConfig(backend="aws")
        config.aws.bucket = "uploads"
        config.aws.endpoint_url = "http://localhost:9000"

        store = create_object_store(config)

        assert isinstance(store, S3ObjectStore)
        assert store.bucket_name == "uploads"
        assert store.endpoint_url == "http://localhost:9000"

    def test_aws_requires_bucket(self):
        with pytest.raises(ValueError, match="bucket is required"):
            create_object_store(StorageConfig(backend="aws"))

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_object_store(StorageConfig(backend="ftp"))

    def test_memory_tracker(self):
        tracker = create_upload_tracker(TrackingConfig(stale_after_seconds=30))
        assert isinstance(tracker, MemoryUploadTracker)
        assert tracker.stale_after_seconds == 30

    def test_unknown_tracker_engine(self):
        with pytest.raises(ValueError, match="Unknown tracking engine"):
            create_upload_tracker(TrackingConfig(engine="redis"))
