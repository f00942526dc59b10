"""Shared pytest fixtures for chunkfs tests.

Every test gets a fresh in-memory tracker and object store, so upload
state never leaks between tests.
"""

from collections.abc import AsyncIterator

import pytest

from chunkfs.orchestrator import UploadOrchestrator
from chunkfs.storage.memory import MemoryObjectStore
from chunkfs.tracking.memory import MemoryUploadTracker


@pytest.fixture
def tracker() -> MemoryUploadTracker:
    return MemoryUploadTracker()


@pytest.fixture
async def storage() -> AsyncIterator[MemoryObjectStore]:
    store = MemoryObjectStore(base_url="memory://test/")
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def orchestrator(storage, tracker) -> UploadOrchestrator:
    return UploadOrchestrator(storage, tracker)
