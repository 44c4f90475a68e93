"""
服务端托管 IPFS 存储提供商 - 由应用服务端负责 pinning，客户端无需持有 IPFS 凭据
"""
from typing import Optional

from loguru import logger

from ..base import generate_filename, guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider

PUBLIC_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"


class ServerIPFSStorage(HttpStorageProvider):
    """服务端托管 IPFS 存储提供商"""

    provider_type = "server-ipfs"

    def __init__(self, upload_endpoint: str, base_url: Optional[str] = None,
                 gateway_url: Optional[str] = None, **http_options):
        if not upload_endpoint:
            raise StorageError(
                "Upload endpoint is required for server-managed IPFS",
                ErrorCode.MISSING_CONFIG,
                self.provider_type,
            )
        super().__init__(**http_options)
        self.upload_url = f"{base_url.rstrip('/')}{upload_endpoint}" if base_url else upload_endpoint
        self.gateway_url = (gateway_url or PUBLIC_GATEWAY_URL).rstrip("/")

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Failed to upload to server")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        file_name = filename or generate_filename()
        content_type = guess_content_type(file_name)

        async with self._client() as client:
            response = await client.post(
                self.upload_url,
                files={"file": (file_name, file, content_type)},
            )

        if not response.is_success:
            raise StorageError(
                f"Server upload failed: {response.status_code} {response.reason_phrase} - {response.text}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        result = response.json()
        if not result.get("success"):
            raise StorageError(
                f"Server upload failed: {result.get('error')}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        url = result.get("url")
        if not url:
            raise StorageError(
                "Server upload succeeded but no url returned",
                ErrorCode.NO_IDENTIFIER_RETURNED,
                self.provider_type,
            )

        logger.info(f"服务端 IPFS 上传成功: {url}")
        return UploadResult(
            url=url,
            size=result.get("size") or len(file),
            content_type=content_type,
            metadata={
                "ipfs_hash": result.get("ipfsHash"),
                "file_name": file_name,
                "storage": "app-managed-ipfs",
                "server_response": result,
            },
        )

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Failed to download file")
    async def download(self, locator: str) -> bytes:
        download_url = locator
        if locator.startswith("ipfs://"):
            download_url = f"{self.gateway_url}/{locator[len('ipfs://'):]}"

        async with self._client() as client:
            response = await client.get(download_url)

        if not response.is_success:
            raise StorageError(
                f"Failed to download file: {response.status_code} {response.reason_phrase}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )
        return response.content

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="Server-managed IPFS",
            type="server-ipfs",
            requires_auth=False,
            features=ProviderFeatures(upload=True, download=True, list=False, delete=False),
        )
