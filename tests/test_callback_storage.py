"""Tests for CallbackStorage delegation and validation."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.storage import (
    CallbackStorage,
    ErrorCode,
    ListOptions,
    StorageError,
    StorageManager,
    UploadResult,
)


def make_storage(**callbacks):
    callbacks.setdefault("upload", AsyncMock(return_value={"url": "https://x/y/file123", "size": 4}))
    callbacks.setdefault("download", AsyncMock(return_value=b"data"))
    return CallbackStorage(**callbacks)


def test_requires_upload_and_download():
    with pytest.raises(StorageError) as exc_info:
        CallbackStorage(upload=AsyncMock())
    assert exc_info.value.code == ErrorCode.MISSING_CALLBACKS

    with pytest.raises(StorageError):
        CallbackStorage(download=AsyncMock())


def test_config_reflects_supplied_callbacks():
    config = make_storage().get_config()
    assert config.name == "callback-storage"
    assert config.type == "callback"
    assert config.requires_auth is False
    assert config.features.model_dump() == {"upload": True, "download": True, "list": False, "delete": False}

    full = make_storage(list=AsyncMock(), delete=AsyncMock()).get_config()
    assert full.features.list is True
    assert full.features.delete is True


def test_supports_matches_features():
    storage = make_storage(delete=AsyncMock())
    assert storage.supports("upload")
    assert storage.supports("delete")
    assert not storage.supports("list")
    assert not storage.supports("rename")


async def test_upload_returns_callback_result():
    upload = AsyncMock(return_value={"url": "mem/1", "size": 3, "content_type": "text/plain"})
    storage = make_storage(upload=upload)

    result = await storage.upload(b"abc", "a.txt")

    upload.assert_awaited_once_with(b"abc", "a.txt")
    assert result == UploadResult(url="mem/1", size=3, content_type="text/plain")


async def test_upload_accepts_sync_callback_and_model():
    storage = make_storage(upload=lambda data, name=None: UploadResult(url="sync/1", size=len(data)))
    result = await storage.upload(b"abcd")
    assert result.url == "sync/1"
    assert result.size == 4
    assert result.content_type == "application/octet-stream"


@pytest.mark.parametrize("bad_result", [
    {"url": ""},
    {"url": "   "},
    {"size": 3},
    {"url": None},
    "mem/1",
    None,
])
async def test_upload_rejects_invalid_results(bad_result):
    storage = make_storage(upload=AsyncMock(return_value=bad_result))
    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"abc")
    assert exc_info.value.code == ErrorCode.INVALID_UPLOAD_RESULT
    assert exc_info.value.provider == "callback-storage"


async def test_upload_wraps_callback_failure():
    original = ConnectionError("offline")
    storage = make_storage(upload=AsyncMock(side_effect=original))
    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"abc")
    assert exc_info.value.code == ErrorCode.UPLOAD_ERROR
    assert exc_info.value.cause is original
    assert "offline" in exc_info.value.message


async def test_upload_preserves_callback_storage_error():
    original = StorageError("quota", ErrorCode.UPLOAD_FAILED, "my-backend")
    storage = make_storage(upload=AsyncMock(side_effect=original))
    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"abc")
    assert exc_info.value is original


async def test_download_uses_extract_identifier():
    download = AsyncMock(return_value=b"payload")
    storage = make_storage(download=download, extract_identifier=lambda url: url.split("/")[-1])

    data = await storage.download("https://x/y/file123")

    download.assert_awaited_once_with("file123")
    assert data == b"payload"


async def test_download_passes_locator_without_extractor():
    download = MagicMock(return_value=bytearray(b"raw"))
    storage = make_storage(download=download)

    data = await storage.download("https://x/y/file123")

    download.assert_called_once_with("https://x/y/file123")
    assert data == b"raw"
    assert isinstance(data, bytes)


async def test_download_rejects_non_binary_result():
    storage = make_storage(download=AsyncMock(return_value="not bytes"))
    with pytest.raises(StorageError) as exc_info:
        await storage.download("id")
    assert exc_info.value.code == ErrorCode.INVALID_DOWNLOAD_RESULT


async def test_download_wraps_callback_failure():
    storage = make_storage(download=AsyncMock(side_effect=KeyError("id")))
    with pytest.raises(StorageError) as exc_info:
        await storage.download("id")
    assert exc_info.value.code == ErrorCode.DOWNLOAD_ERROR


async def test_list_without_callback_is_not_supported():
    storage = make_storage()
    with pytest.raises(StorageError) as exc_info:
        await storage.list()
    assert exc_info.value.code == ErrorCode.NOT_SUPPORTED


async def test_delete_without_callback_is_not_supported_and_not_called():
    download = AsyncMock()
    storage = make_storage(download=download)
    with pytest.raises(StorageError) as exc_info:
        await storage.delete("https://x/y/file123")
    assert exc_info.value.code == ErrorCode.NOT_SUPPORTED
    download.assert_not_awaited()


async def test_delete_without_callback_through_manager():
    manager = StorageManager()
    manager.register("cb", make_storage())
    with pytest.raises(StorageError) as exc_info:
        await manager.delete("anything")
    assert exc_info.value.code == ErrorCode.NOT_SUPPORTED


async def test_list_maps_items_to_descriptors():
    modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
    list_callback = AsyncMock(return_value={
        "items": [
            {"identifier": "folder/report.pdf", "size": 10, "last_modified": modified, "metadata": {"k": "v"}},
            {"identifier": "folder/"},
        ]
    })
    storage = make_storage(list=list_callback)
    options = ListOptions(name_pattern="report", limit=2)

    files = await storage.list(options)

    list_callback.assert_awaited_once_with("report", options)
    assert files[0].id == "folder/report.pdf"
    assert files[0].name == "report.pdf"
    assert files[0].url == "folder/report.pdf"
    assert files[0].size == 10
    assert files[0].created_at == modified
    assert files[0].metadata == {"k": "v"}
    assert files[1].name == "file-1"
    assert files[1].size == 0
    assert files[1].content_type == "application/octet-stream"
    assert files[1].created_at.tzinfo is not None


async def test_list_passes_none_pattern_without_options():
    list_callback = MagicMock(return_value={"items": []})
    storage = make_storage(list=list_callback)
    assert await storage.list() == []
    list_callback.assert_called_once_with(None, None)


async def test_list_wraps_malformed_result():
    storage = make_storage(list=AsyncMock(return_value={"items": [{"size": 1}]}))
    with pytest.raises(StorageError) as exc_info:
        await storage.list()
    assert exc_info.value.code == ErrorCode.LIST_ERROR


async def test_list_preserves_callback_storage_error():
    original = StorageError("denied", ErrorCode.AUTHENTICATION_ERROR, "my-backend")
    storage = make_storage(list=AsyncMock(side_effect=original))
    with pytest.raises(StorageError) as exc_info:
        await storage.list()
    assert exc_info.value is original


async def test_delete_uses_extract_identifier_and_coerces_bool():
    delete = AsyncMock(return_value=1)
    storage = make_storage(delete=delete, extract_identifier=lambda url: url.rsplit("/", 1)[-1])

    assert await storage.delete("https://x/y/file123") is True
    delete.assert_awaited_once_with("file123")


async def test_delete_wraps_callback_failure():
    storage = make_storage(delete=AsyncMock(side_effect=OSError("disk")))
    with pytest.raises(StorageError) as exc_info:
        await storage.delete("id")
    assert exc_info.value.code == ErrorCode.DELETE_ERROR


async def test_memory_round_trip(memory_storage):
    result = await memory_storage.upload(b"hello", "greeting.txt")
    assert await memory_storage.download(result.url) == b"hello"

    files = await memory_storage.list(ListOptions(name_pattern="greet"))
    assert [f.name for f in files] == ["greeting.txt"]

    assert await memory_storage.delete(result.url) is True
    assert await memory_storage.delete(result.url) is False
