"""
服务端代理存储提供商 - 上传和下载都经由应用自己的服务端完成

服务端接口约定:
    POST upload_url   multipart: file, name(可选)
        -> {"success": true, "identifier": "...", "url": "..."}
    POST download_url JSON: {"identifier": "..."}
        -> 文件原始内容
"""
from typing import Optional

from loguru import logger

from ..base import guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider


class ServerProxyStorage(HttpStorageProvider):
    """服务端代理存储提供商"""

    provider_type = "server-proxy"

    def __init__(self, upload_url: str, download_url: str, **http_options):
        if not upload_url:
            raise StorageError("Upload URL is required", ErrorCode.MISSING_CONFIG, self.provider_type)
        if not download_url:
            raise StorageError("Download URL is required", ErrorCode.MISSING_CONFIG, self.provider_type)
        super().__init__(**http_options)
        self.upload_url = upload_url
        self.download_url = download_url

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Server proxy upload error")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        content_type = guess_content_type(filename)
        data = {"name": filename} if filename else {}

        async with self._client() as client:
            response = await client.post(
                self.upload_url,
                files={"file": (filename or "blob", file, content_type)},
                data=data,
            )

        if not response.is_success:
            raise StorageError(
                f"Server upload failed: {response.status_code} {response.reason_phrase}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        result = response.json()
        if not result.get("success"):
            raise StorageError(
                f"Upload failed: {result.get('error') or 'Unknown server error'}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        identifier = result.get("identifier")
        if not identifier:
            raise StorageError(
                "Server upload succeeded but no identifier returned",
                ErrorCode.NO_IDENTIFIER_RETURNED,
                self.provider_type,
            )

        url = result.get("url") or identifier
        logger.info(f"服务端代理上传成功: {url}")
        return UploadResult(url=url, size=len(file), content_type=content_type)

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Server proxy download error")
    async def download(self, locator: str) -> bytes:
        # 服务端同时接受 URL 和裸标识符
        async with self._client() as client:
            response = await client.post(self.download_url, json={"identifier": locator})

        if not response.is_success:
            raise StorageError(
                f"Server download failed: {response.status_code} {response.reason_phrase}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )
        return response.content

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="Server Proxy",
            type="server-proxy",
            requires_auth=False,
            features=ProviderFeatures(upload=True, download=True, list=False, delete=False),
        )
