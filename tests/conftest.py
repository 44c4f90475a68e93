"""Shared fixtures for storage tests."""

from typing import Callable, Dict, List

import httpx
import pytest

from core.storage import CallbackStorage, ProviderConfig, ProviderFeatures, StorageProvider, UploadResult


class RecordingProvider(StorageProvider):
    """In-memory provider that records every call it receives."""

    provider_type = "recording"

    def __init__(self, label: str, list_supported: bool = True, delete_supported: bool = True):
        self.label = label
        self.list_supported = list_supported
        self.delete_supported = delete_supported
        self.calls: List[tuple] = []
        self.files: Dict[str, bytes] = {}

    async def upload(self, file, filename=None):
        self.calls.append(("upload", file, filename))
        locator = f"{self.label}://{filename or len(self.files)}"
        self.files[locator] = bytes(file)
        return UploadResult(url=locator, size=len(file))

    async def download(self, locator):
        self.calls.append(("download", locator))
        return self.files[locator]

    async def list(self, options=None):
        self.calls.append(("list", options))
        if not self.list_supported:
            raise self._not_supported("list")
        return []

    async def delete(self, locator):
        self.calls.append(("delete", locator))
        if not self.delete_supported:
            raise self._not_supported("delete")
        return self.files.pop(locator, None) is not None

    def get_config(self):
        return ProviderConfig(
            name=self.label,
            type="recording",
            features=ProviderFeatures(list=self.list_supported, delete=self.delete_supported),
        )


@pytest.fixture
def recording_provider() -> Callable[..., RecordingProvider]:
    return RecordingProvider


@pytest.fixture
def memory_storage() -> CallbackStorage:
    """CallbackStorage backed by a dict, with every optional callback supplied."""
    blobs: Dict[str, bytes] = {}

    def upload(data, filename=None):
        identifier = f"mem/{filename or 'blob-%d' % len(blobs)}"
        blobs[identifier] = data
        return {"url": identifier, "size": len(data)}

    def download(identifier):
        return blobs[identifier]

    def list_files(name_pattern, options):
        return {
            "items": [
                {"identifier": key, "size": len(value)}
                for key, value in blobs.items()
                if not name_pattern or name_pattern in key
            ]
        }

    def delete(identifier):
        return blobs.pop(identifier, None) is not None

    storage = CallbackStorage(upload=upload, download=download, list=list_files, delete=delete)
    storage.blobs = blobs
    return storage


@pytest.fixture
def mock_transport():
    """Build an httpx.MockTransport that records requests before delegating to a handler."""

    def factory(handler):
        requests: List[httpx.Request] = []

        def recorder(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(recorder)
        transport.requests = requests
        return transport

    return factory
