"""Shared fixtures for uploader tests."""

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from asset_uploader.uploader.exceptions import RemoteStoreError
from asset_uploader.uploader.store import RemoteObjectStore
from asset_uploader.utils.metrics import UploadMetrics


def unavailable_error() -> RemoteStoreError:
    """Transient store error used by the fake store."""
    return RemoteStoreError(
        code="503",
        name="ServiceUnavailable",
        message="backend unavailable",
        status_code=503,
    )


class FakeObjectStore(RemoteObjectStore):
    """
    In-memory object store.

    Args:
        existing: Objects already in the bucket (key -> body)
        put_failures: Number of failing puts per key before one succeeds
        fail_always: Keys whose puts always fail
        head_errors: Keys whose existence check raises the given error
    """

    def __init__(
        self,
        existing: Optional[Dict[str, bytes]] = None,
        put_failures: Optional[Dict[str, int]] = None,
        fail_always: Iterable[str] = (),
        head_errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.objects: Dict[str, bytes] = dict(existing or {})
        self.put_failures = dict(put_failures or {})
        self.fail_always = set(fail_always)
        self.head_errors = dict(head_errors or {})
        self.head_calls: List[str] = []
        self.put_calls: List[str] = []

    async def head_exists(self, bucket: str, region: str, key: str) -> bool:
        self.head_calls.append(key)
        await asyncio.sleep(0)
        if key in self.head_errors:
            raise self.head_errors[key]
        return key in self.objects

    async def put(self, bucket: str, region: str, key: str, body: bytes) -> dict:
        self.put_calls.append(key)
        await asyncio.sleep(0)
        if key in self.fail_always:
            raise unavailable_error()
        if self.put_failures.get(key, 0) > 0:
            self.put_failures[key] -= 1
            raise unavailable_error()
        self.objects[key] = body
        return {"key": key, "size": len(body), "etag": f"etag-{len(self.objects)}"}


@pytest.fixture
def store() -> FakeObjectStore:
    """Empty in-memory store."""
    return FakeObjectStore()


@pytest.fixture
def quiet_metrics() -> UploadMetrics:
    """Metrics sink that records nothing."""
    return UploadMetrics(enabled=False)


@pytest.fixture
def make_store():
    """Factory for in-memory stores with scripted failures."""
    return FakeObjectStore
