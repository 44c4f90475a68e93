"""
Dropbox 存储提供商
"""
import json
from typing import Dict, List, Optional
from urllib.parse import urlparse

import httpx
from loguru import logger

from ..base import generate_filename, guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import FileDescriptor, ListOptions, ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"
DEFAULT_ROOT_PATH = "/DataWallet"
LOCATOR_SCHEME = "dropbox://"


def to_direct_download_url(url: str) -> str:
    """共享链接转直接下载链接"""
    return url.replace("www.dropbox.com", "dl.dropboxusercontent.com").replace("?dl=1", "")


def to_shared_link_url(url: str) -> str:
    """直接下载链接还原为共享链接"""
    return url.replace("dl.dropboxusercontent.com", "www.dropbox.com")


def _is_not_found(response: httpx.Response) -> bool:
    """Dropbox 用 409 + error_summary 表示路径或链接不存在"""
    if response.status_code == 404:
        return True
    if response.status_code != 409:
        return False
    try:
        summary = response.json().get("error_summary") or ""
    except ValueError:
        return False
    return "not_found" in summary


class DropboxStorage(HttpStorageProvider):
    """Dropbox 存储提供商"""

    provider_type = "dropbox"

    def __init__(self, access_token: str, root_path: Optional[str] = None, **http_options):
        if not access_token:
            raise StorageError("Dropbox access token is required", ErrorCode.MISSING_CONFIG, self.provider_type)
        super().__init__(**http_options)
        self.access_token = access_token
        self.root_path = (root_path or DEFAULT_ROOT_PATH).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Dropbox upload error")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        file_name = filename or generate_filename()
        path = f"{self.root_path}/{file_name}"

        async with self._client() as client:
            response = await client.post(
                f"{CONTENT_URL}/files/upload",
                content=file,
                headers={
                    "Content-Type": "application/octet-stream",
                    "Dropbox-API-Arg": json.dumps({
                        "path": path,
                        "mode": "add",
                        "autorename": True,
                        "mute": False,
                    }),
                },
            )

            if not response.is_success:
                raise StorageError(
                    f"Failed to upload to Dropbox: {response.text}",
                    ErrorCode.UPLOAD_FAILED,
                    self.provider_type,
                )

            result = response.json()
            shared_link = await self._create_shared_link(client, result["path_lower"])

        # 链上记录的必须是原始内容链接，而不是预览页
        url = to_direct_download_url(shared_link)
        logger.info(f"Dropbox上传成功: {url}")
        return UploadResult(
            url=url,
            size=len(file),
            content_type=guess_content_type(file_name),
            metadata={"id": result.get("id"), "path": result.get("path_display")},
        )

    async def _create_shared_link(self, client, path: str) -> str:
        response = await client.post(
            f"{API_URL}/sharing/create_shared_link_with_settings",
            json={"path": path, "settings": {"requested_visibility": "public"}},
        )

        if not response.is_success:
            error_data = response.json()
            # 链接已存在时 Dropbox 返回 409，并附带已有链接
            existing = (error_data.get("error") or {}).get("shared_link_already_exists")
            if response.status_code == 409 and existing:
                return existing["metadata"]["url"]
            raise StorageError(
                f"Failed to create shared link: {json.dumps(error_data)}",
                ErrorCode.LINK_CREATION_FAILED,
                self.provider_type,
            )

        return response.json()["url"].replace("?dl=0", "?dl=1")

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Dropbox download error")
    async def download(self, locator: str) -> bytes:
        async with self._client() as client:
            if locator.startswith(LOCATOR_SCHEME):
                # list 返回的路径定位符走 API 下载
                response = await client.post(
                    f"{CONTENT_URL}/files/download",
                    headers={"Dropbox-API-Arg": json.dumps({"path": locator[len(LOCATOR_SCHEME):]})},
                )
            else:
                download_url = locator.replace("www.dropbox.com", "dl.dropboxusercontent.com")
                response = await client.get(download_url, follow_redirects=True)

        if not response.is_success:
            raise StorageError(
                f"Failed to download from Dropbox: {response.status_code} {response.reason_phrase}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )
        return response.content

    @storage_operation(ErrorCode.LIST_ERROR, "Dropbox list error")
    async def list(self, options: Optional[ListOptions] = None) -> List[FileDescriptor]:
        limit = (options.limit if options else None) or 100

        async with self._client() as client:
            response = await client.post(
                f"{API_URL}/files/list_folder",
                json={"path": self.root_path, "limit": limit, "include_deleted": False},
            )

        if not response.is_success:
            raise StorageError(
                f"Failed to list Dropbox files: {response.text}",
                ErrorCode.LIST_FAILED,
                self.provider_type,
            )

        files = []
        for entry in response.json().get("entries", []):
            if entry.get(".tag") != "file":
                continue
            files.append(FileDescriptor(
                id=entry["id"],
                name=entry["name"],
                url=f"{LOCATOR_SCHEME}{entry['path_lower']}",
                size=entry.get("size") or 0,
                created_at=entry["server_modified"],
            ))
        return files

    @storage_operation(ErrorCode.DELETE_ERROR, "Dropbox delete error")
    async def delete(self, locator: str) -> bool:
        async with self._client() as client:
            path = await self._resolve_path(client, locator)
            if path is None:
                logger.info(f"Dropbox 共享链接已失效，视为已删除: {locator}")
                return True

            response = await client.post(f"{API_URL}/files/delete_v2", json={"path": path})

        if not response.is_success and not _is_not_found(response):
            raise StorageError(
                f"Failed to delete from Dropbox: {response.text}",
                ErrorCode.DELETE_FAILED,
                self.provider_type,
            )
        return True

    async def _resolve_path(self, client: httpx.AsyncClient, locator: str) -> Optional[str]:
        """定位符转 Dropbox 文件路径；共享链接指向的文件不存在时返回 None"""
        if locator.startswith(LOCATOR_SCHEME):
            return locator[len(LOCATOR_SCHEME):]

        parsed = urlparse(locator)
        if parsed.scheme not in ("http", "https") or not parsed.path.strip("/"):
            raise StorageError(f"Invalid Dropbox URL: {locator}", ErrorCode.INVALID_URL, self.provider_type)

        # upload 返回的是直接下载链接，需要先还原成共享链接再查元数据
        shared_url = to_shared_link_url(locator)
        response = await client.post(f"{API_URL}/sharing/get_shared_link_metadata", json={"url": shared_url})

        if _is_not_found(response):
            return None
        if not response.is_success:
            raise StorageError(
                f"Failed to resolve Dropbox shared link: {response.text}",
                ErrorCode.INVALID_URL,
                self.provider_type,
            )

        path = response.json().get("path_lower")
        if not path:
            raise StorageError(
                f"Dropbox shared link is not owned by this account: {locator}",
                ErrorCode.INVALID_URL,
                self.provider_type,
            )
        return path

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="Dropbox",
            type="dropbox",
            requires_auth=True,
            features=ProviderFeatures(upload=True, download=True, list=True, delete=True),
        )
