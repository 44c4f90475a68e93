"""
Google Drive 存储提供商

OAuth 授权流程不在这里处理，调用方负责提供 access_token；
配置了 refresh_token / client_id / client_secret 时可以调用 refresh_access_token() 刷新。
"""
import json
import re
from typing import Dict, List, Optional

import httpx
from loguru import logger

from ..base import generate_filename, guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import FileDescriptor, ListOptions, ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider

BASE_URL = "https://www.googleapis.com/drive/v3"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
MULTIPART_BOUNDARY = "-------314159265358979323846"

FILE_ID_PATTERNS = [
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"id=([a-zA-Z0-9_-]+)"),
    re.compile(r"^([a-zA-Z0-9_-]+)$"),
]


def extract_file_id(url: str) -> Optional[str]:
    """从 Google Drive URL 中提取文件 ID"""
    for pattern in FILE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def download_url_for(file_id: str) -> str:
    return f"https://drive.google.com/uc?id={file_id}&export=download"


def escape_query_value(value: str) -> str:
    """转义 Drive 查询语句中单引号字符串里的反斜杠和单引号"""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveStorage(HttpStorageProvider):
    """Google Drive 存储提供商"""

    provider_type = "google-drive"

    def __init__(self, access_token: str, folder_id: Optional[str] = None,
                 refresh_token: Optional[str] = None, client_id: Optional[str] = None,
                 client_secret: Optional[str] = None, **http_options):
        if not access_token:
            raise StorageError(
                "Google Drive access token is required",
                ErrorCode.MISSING_CONFIG,
                self.provider_type,
            )
        super().__init__(**http_options)
        self.access_token = access_token
        self.folder_id = folder_id
        self.refresh_token = refresh_token
        self.client_id = client_id
        self.client_secret = client_secret

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _require_file_id(self, url: str) -> str:
        file_id = extract_file_id(url)
        if not file_id:
            raise StorageError("Invalid Google Drive URL format", ErrorCode.INVALID_URL, self.provider_type)
        return file_id

    @staticmethod
    def _multipart_body(metadata: dict, file: bytes, content_type: str) -> bytes:
        head = "\r\n".join([
            f"--{MULTIPART_BOUNDARY}",
            "Content-Type: application/json",
            "",
            json.dumps(metadata),
            f"--{MULTIPART_BOUNDARY}",
            f"Content-Type: {content_type}",
            "",
            "",
        ])
        return head.encode() + file + f"\r\n--{MULTIPART_BOUNDARY}--".encode()

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Google Drive upload error")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        file_name = filename or generate_filename()
        content_type = guess_content_type(file_name)
        metadata = {"name": file_name}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]

        async with self._client() as client:
            response = await client.post(
                f"{UPLOAD_URL}/files",
                params={"uploadType": "multipart"},
                content=self._multipart_body(metadata, file, content_type),
                headers={"Content-Type": f'multipart/related; boundary="{MULTIPART_BOUNDARY}"'},
            )

            if not response.is_success:
                raise StorageError(
                    f"Failed to upload to Google Drive: {response.text}",
                    ErrorCode.UPLOAD_FAILED,
                    self.provider_type,
                )

            result = response.json()
            await self._make_file_public(client, result["id"])

        url = download_url_for(result["id"])
        logger.info(f"Google Drive上传成功: {url}")
        return UploadResult(
            url=url,
            size=len(file),
            content_type=content_type,
            metadata={
                "id": result["id"],
                "name": result.get("name"),
                "drive_url": f"https://drive.google.com/file/d/{result['id']}/view",
            },
        )

    async def _make_file_public(self, client: httpx.AsyncClient, file_id: str) -> None:
        """设置任何人可读；失败不影响上传结果"""
        try:
            response = await client.post(
                f"{BASE_URL}/files/{file_id}/permissions",
                json={"role": "reader", "type": "anyone"},
            )
            if not response.is_success:
                logger.warning(f"⚠️ Google Drive 文件公开失败: {file_id}, {response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Google Drive 文件公开失败: {file_id}, {e}")

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Google Drive download error")
    async def download(self, locator: str) -> bytes:
        file_id = self._require_file_id(locator)

        async with self._client() as client:
            response = await client.get(f"{BASE_URL}/files/{file_id}", params={"alt": "media"})

        if not response.is_success:
            raise StorageError(
                f"Failed to download from Google Drive: {response.text}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )

        # 拿到 HTML 说明授权或 URL 有问题，而不是文件内容
        if response.headers.get("content-type", "").startswith("text/html"):
            raise StorageError(
                "Received HTML content instead of file data. This suggests an authentication "
                "or URL formatting issue with Google Drive.",
                ErrorCode.AUTHENTICATION_ERROR,
                self.provider_type,
            )
        return response.content

    @storage_operation(ErrorCode.LIST_ERROR, "Google Drive list error")
    async def list(self, options: Optional[ListOptions] = None) -> List[FileDescriptor]:
        query = "trashed = false"
        if self.folder_id:
            query += f" and '{escape_query_value(self.folder_id)}' in parents"
        if options and options.name_pattern:
            query += f" and name contains '{escape_query_value(options.name_pattern)}'"

        params = {
            "q": query,
            "fields": "files(id,name,size,mimeType,createdTime,webViewLink)",
            "pageSize": str((options.limit if options else None) or 100),
        }
        if options and isinstance(options.offset, str) and options.offset:
            params["pageToken"] = options.offset

        async with self._client() as client:
            response = await client.get(f"{BASE_URL}/files", params=params)

        if not response.is_success:
            raise StorageError(
                f"Failed to list Google Drive files: {response.text}",
                ErrorCode.LIST_FAILED,
                self.provider_type,
            )

        files = []
        for item in response.json().get("files", []):
            try:
                size = int(item.get("size") or 0)
            except (TypeError, ValueError):
                size = 0
            files.append(FileDescriptor(
                id=item["id"],
                name=item["name"],
                url=download_url_for(item["id"]),
                size=size,
                content_type=item.get("mimeType") or "application/octet-stream",
                created_at=item["createdTime"],
                metadata={"id": item["id"], "drive_url": item.get("webViewLink")},
            ))
        return files

    @storage_operation(ErrorCode.DELETE_ERROR, "Google Drive delete error")
    async def delete(self, locator: str) -> bool:
        file_id = self._require_file_id(locator)

        async with self._client() as client:
            response = await client.delete(f"{BASE_URL}/files/{file_id}")

        if not response.is_success and response.status_code != 404:
            raise StorageError(
                f"Failed to delete from Google Drive: {response.text}",
                ErrorCode.DELETE_FAILED,
                self.provider_type,
            )
        return True

    @storage_operation(ErrorCode.FOLDER_ERROR, "Google Drive find folder error")
    async def find_folder(self, name: str, parent_id: str = "root") -> Optional[str]:
        """按名称查找文件夹，返回文件夹 ID，找不到返回 None"""
        query = (
            f"name='{escape_query_value(name)}' and '{escape_query_value(parent_id)}' in parents "
            f"and mimeType='{FOLDER_MIME_TYPE}' and trashed = false"
        )
        async with self._client() as client:
            response = await client.get(
                f"{BASE_URL}/files",
                params={"q": query, "fields": "files(id,name,mimeType)"},
            )

        if not response.is_success:
            raise StorageError(
                f"Failed to search Google Drive folders: {response.text}",
                ErrorCode.FOLDER_ERROR,
                self.provider_type,
            )

        folders = response.json().get("files") or []
        return folders[0]["id"] if folders else None

    @storage_operation(ErrorCode.FOLDER_ERROR, "Google Drive create folder error")
    async def create_folder(self, name: str, parent_id: str = "root") -> str:
        """创建文件夹，返回文件夹 ID"""
        async with self._client() as client:
            response = await client.post(
                f"{BASE_URL}/files",
                json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            )

        if not response.is_success:
            raise StorageError(
                f"Failed to create Google Drive folder: {response.text}",
                ErrorCode.FOLDER_ERROR,
                self.provider_type,
            )
        return response.json()["id"]

    async def find_or_create_folder(self, name: str, parent_id: str = "root") -> str:
        folder_id = await self.find_folder(name, parent_id)
        if folder_id:
            return folder_id
        logger.info(f"创建 Google Drive 文件夹: {name}")
        return await self.create_folder(name, parent_id)

    @storage_operation(ErrorCode.TOKEN_REFRESH_FAILED, "Google Drive token refresh error")
    async def refresh_access_token(self) -> str:
        """用 refresh token 换取新的 access token，并更新当前实例"""
        if not (self.refresh_token and self.client_id and self.client_secret):
            raise StorageError(
                "Refresh token, client ID, and client secret are required for token refresh",
                ErrorCode.MISSING_CONFIG,
                self.provider_type,
            )

        async with self._client() as client:
            response = await client.post(TOKEN_URL, data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            })

        if not response.is_success:
            raise StorageError(
                f"Failed to refresh Google Drive token: {response.text}",
                ErrorCode.TOKEN_REFRESH_FAILED,
                self.provider_type,
            )

        self.access_token = response.json()["access_token"]
        logger.info("✅ Google Drive access token 已刷新")
        return self.access_token

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="Google Drive",
            type="google-drive",
            requires_auth=True,
            features=ProviderFeatures(upload=True, download=True, list=True, delete=True),
        )
