"""chunkfs - chunked upload tracking and orchestration for object storage."""

__version__ = "0.1.0"
