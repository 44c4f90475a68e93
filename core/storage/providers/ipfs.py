"""
IPFS 存储提供商 - 兼容 Pinata / Infura 等 pinning 服务的上传接口
"""
import json
from datetime import datetime, timezone
from typing import Dict, Optional

from loguru import logger

from ..base import generate_filename, guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider, extract_ipfs_hash

DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"


class IPFSStorage(HttpStorageProvider):
    """通用 IPFS 存储提供商（只支持上传和下载）"""

    provider_type = "ipfs"

    def __init__(self, api_endpoint: str, api_key: Optional[str] = None, jwt: Optional[str] = None,
                 gateway_url: Optional[str] = None, **http_options):
        if not api_endpoint:
            raise StorageError("IPFS API endpoint is required", ErrorCode.MISSING_CONFIG, self.provider_type)
        super().__init__(**http_options)
        self.api_endpoint = api_endpoint
        self.api_key = api_key
        self.jwt = jwt
        self.gateway_url = (gateway_url or DEFAULT_GATEWAY_URL).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.jwt:
            headers["Authorization"] = f"Bearer {self.jwt}"
        elif self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    @storage_operation(ErrorCode.UPLOAD_ERROR, "IPFS upload error")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        file_name = filename or generate_filename()
        content_type = guess_content_type(file_name)

        data = {}
        if self.jwt:
            data["pinataMetadata"] = json.dumps({
                "name": file_name,
                "keyvalues": {
                    "uploadedBy": "datawallet-sdk",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            })

        logger.debug(f"上传文件到 IPFS: {file_name} ({len(file)} bytes)")
        async with self._client() as client:
            response = await client.post(
                self.api_endpoint,
                files={"file": (file_name, file, content_type)},
                data=data,
            )

        if not response.is_success:
            raise StorageError(
                f"Failed to upload to IPFS: {response.text}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        result = response.json()
        ipfs_hash = result.get("IpfsHash") or result.get("Hash") or result.get("hash")
        if not ipfs_hash:
            raise StorageError(
                "IPFS upload succeeded but no hash returned",
                ErrorCode.NO_HASH_RETURNED,
                self.provider_type,
            )

        public_url = f"{self.gateway_url}/{ipfs_hash}"
        logger.info(f"IPFS上传成功: {public_url}")
        return UploadResult(
            url=public_url,
            size=len(file),
            content_type=content_type,
            metadata={
                "hash": ipfs_hash,
                "file_name": file_name,
                "ipfs_url": f"ipfs://{ipfs_hash}",
                "gateway_url": public_url,
            },
        )

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "IPFS download error")
    async def download(self, locator: str) -> bytes:
        ipfs_hash = extract_ipfs_hash(locator)
        if not ipfs_hash:
            raise StorageError("Invalid IPFS URL format", ErrorCode.INVALID_URL, self.provider_type)

        async with self._client() as client:
            response = await client.get(f"{self.gateway_url}/{ipfs_hash}")

        if not response.is_success:
            raise StorageError(
                f"Failed to download from IPFS: {response.status_code} {response.reason_phrase}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )
        return response.content

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="IPFS",
            type="ipfs",
            requires_auth=bool(self.api_key or self.jwt),
            features=ProviderFeatures(upload=True, download=True, list=False, delete=False),
        )
