"""Tests for DropboxStorage against a mocked Dropbox API."""

import json

import httpx
import pytest

from core.storage import DropboxStorage, ErrorCode, StorageError
from core.storage.providers.dropbox import to_direct_download_url

SHARED_URL = "https://www.dropbox.com/s/abc123/report.pdf?dl=0"
DIRECT_URL = "https://dl.dropboxusercontent.com/s/abc123/report.pdf"


def upload_handler(link_response):
    def handler(request):
        if request.url.path == "/2/files/upload":
            return httpx.Response(200, json={
                "id": "id:abc",
                "path_lower": "/datawallet/report.pdf",
                "path_display": "/DataWallet/report.pdf",
            })
        return link_response
    return handler


def test_requires_access_token():
    with pytest.raises(StorageError) as exc_info:
        DropboxStorage(access_token="")
    assert exc_info.value.code == ErrorCode.MISSING_CONFIG


def test_to_direct_download_url():
    assert to_direct_download_url("https://www.dropbox.com/s/abc123/report.pdf?dl=1") == DIRECT_URL


async def test_upload_creates_shared_link(mock_transport):
    transport = mock_transport(upload_handler(httpx.Response(200, json={"url": SHARED_URL})))
    storage = DropboxStorage(access_token="token", transport=transport)

    result = await storage.upload(b"%PDF", "report.pdf")

    upload_request, link_request = transport.requests
    assert str(upload_request.url) == "https://content.dropboxapi.com/2/files/upload"
    assert upload_request.headers["Authorization"] == "Bearer token"
    assert json.loads(upload_request.headers["Dropbox-API-Arg"])["path"] == "/DataWallet/report.pdf"
    assert upload_request.content == b"%PDF"
    assert json.loads(link_request.content)["path"] == "/datawallet/report.pdf"
    assert result.url == DIRECT_URL
    assert result.content_type == "application/pdf"
    assert result.metadata == {"id": "id:abc", "path": "/DataWallet/report.pdf"}


async def test_upload_reuses_existing_shared_link(mock_transport):
    conflict = httpx.Response(409, json={
        "error": {"shared_link_already_exists": {"metadata": {"url": "https://www.dropbox.com/s/abc123/report.pdf?dl=1"}}},
    })
    storage = DropboxStorage(access_token="token", transport=mock_transport(upload_handler(conflict)))

    result = await storage.upload(b"%PDF", "report.pdf")

    assert result.url == DIRECT_URL


async def test_upload_link_creation_failure(mock_transport):
    failure = httpx.Response(400, json={"error": {".tag": "email_not_verified"}})
    storage = DropboxStorage(access_token="token", transport=mock_transport(upload_handler(failure)))
    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"%PDF", "report.pdf")
    assert exc_info.value.code == ErrorCode.LINK_CREATION_FAILED


async def test_upload_failure(mock_transport):
    storage = DropboxStorage(
        access_token="token",
        transport=mock_transport(lambda request: httpx.Response(401, text="expired_access_token")),
    )
    with pytest.raises(StorageError) as exc_info:
        await storage.upload(b"%PDF")
    assert exc_info.value.code == ErrorCode.UPLOAD_FAILED


async def test_download_rewrites_host(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200, content=b"%PDF"))
    storage = DropboxStorage(access_token="token", transport=transport)

    assert await storage.download("https://www.dropbox.com/s/abc123/report.pdf") == b"%PDF"
    assert transport.requests[0].url.host == "dl.dropboxusercontent.com"


async def test_list_returns_only_files(mock_transport):
    body = {
        "entries": [
            {".tag": "folder", "id": "id:dir", "name": "sub", "path_lower": "/datawallet/sub"},
            {
                ".tag": "file",
                "id": "id:abc",
                "name": "report.pdf",
                "path_lower": "/datawallet/report.pdf",
                "size": 4,
                "server_modified": "2024-05-01T12:00:00Z",
            },
        ]
    }
    transport = mock_transport(lambda request: httpx.Response(200, json=body))
    storage = DropboxStorage(access_token="token", root_path="/DataWallet/", transport=transport)

    files = await storage.list()

    assert json.loads(transport.requests[0].content) == {
        "path": "/DataWallet", "limit": 100, "include_deleted": False,
    }
    assert len(files) == 1
    assert files[0].url == "dropbox:///datawallet/report.pdf"
    assert files[0].size == 4


async def test_list_failure(mock_transport):
    storage = DropboxStorage(access_token="token", transport=mock_transport(lambda r: httpx.Response(500)))
    with pytest.raises(StorageError) as exc_info:
        await storage.list()
    assert exc_info.value.code == ErrorCode.LIST_FAILED


async def test_upload_then_delete_resolves_shared_link(mock_transport):
    def handler(request):
        if request.url.path == "/2/sharing/get_shared_link_metadata":
            return httpx.Response(200, json={"path_lower": "/datawallet/report.pdf", "name": "report.pdf"})
        if request.url.path == "/2/files/delete_v2":
            return httpx.Response(200, json={"metadata": {"path_lower": "/datawallet/report.pdf"}})
        return upload_handler(httpx.Response(200, json={"url": SHARED_URL}))(request)

    transport = mock_transport(handler)
    storage = DropboxStorage(access_token="token", transport=transport)

    result = await storage.upload(b"%PDF", "report.pdf")
    assert await storage.delete(result.url) is True

    metadata_request, delete_request = transport.requests[2:]
    assert json.loads(metadata_request.content) == {"url": "https://www.dropbox.com/s/abc123/report.pdf"}
    assert json.loads(delete_request.content) == {"path": "/datawallet/report.pdf"}


async def test_delete_listed_path_locator(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200, json={}))
    storage = DropboxStorage(access_token="token", transport=transport)

    assert await storage.delete("dropbox:///datawallet/report.pdf") is True
    assert len(transport.requests) == 1
    assert json.loads(transport.requests[0].content) == {"path": "/datawallet/report.pdf"}


async def test_delete_already_removed_file(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(
        409, json={"error_summary": "path_lookup/not_found/.."},
    ))
    storage = DropboxStorage(access_token="token", transport=transport)

    assert await storage.delete("dropbox:///datawallet/gone.pdf") is True


async def test_delete_with_expired_shared_link(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(
        409, json={"error_summary": "shared_link_not_found/"},
    ))
    storage = DropboxStorage(access_token="token", transport=transport)

    assert await storage.delete(DIRECT_URL) is True
    assert [r.url.path for r in transport.requests] == ["/2/sharing/get_shared_link_metadata"]


async def test_delete_foreign_shared_link(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200, json={"name": "report.pdf"}))
    storage = DropboxStorage(access_token="token", transport=transport)
    with pytest.raises(StorageError) as exc_info:
        await storage.delete(DIRECT_URL)
    assert exc_info.value.code == ErrorCode.INVALID_URL


async def test_download_listed_path_locator(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200, content=b"%PDF"))
    storage = DropboxStorage(access_token="token", transport=transport)

    assert await storage.download("dropbox:///datawallet/report.pdf") == b"%PDF"

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://content.dropboxapi.com/2/files/download"
    assert json.loads(request.headers["Dropbox-API-Arg"]) == {"path": "/datawallet/report.pdf"}


async def test_delete_invalid_locator(mock_transport):
    storage = DropboxStorage(access_token="token", transport=mock_transport(lambda r: httpx.Response(200)))
    with pytest.raises(StorageError) as exc_info:
        await storage.delete("not-a-url")
    assert exc_info.value.code == ErrorCode.INVALID_URL


async def test_delete_failure(mock_transport):
    storage = DropboxStorage(access_token="token", transport=mock_transport(lambda r: httpx.Response(500)))
    with pytest.raises(StorageError) as exc_info:
        await storage.delete("dropbox:///datawallet/x")
    assert exc_info.value.code == ErrorCode.DELETE_FAILED
