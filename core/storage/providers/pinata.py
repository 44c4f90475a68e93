"""
Pinata 存储提供商 - 通过 Pinata API 将文件固定到 IPFS
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from ..base import generate_filename, guess_content_type
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import FileDescriptor, ListOptions, ProviderConfig, ProviderFeatures, UploadResult
from .http_base import HttpStorageProvider, extract_ipfs_hash

DEFAULT_API_URL = "https://api.pinata.cloud"
DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud"
UPLOADED_BY = "datawallet-sdk"


class PinataStorage(HttpStorageProvider):
    """Pinata IPFS 存储提供商"""

    provider_type = "pinata"

    def __init__(self, jwt: str, api_url: Optional[str] = None, gateway_url: Optional[str] = None,
                 **http_options):
        if not jwt:
            raise StorageError("Pinata JWT token is required", ErrorCode.MISSING_CONFIG, self.provider_type)
        super().__init__(**http_options)
        self.jwt = jwt
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.gateway_url = (gateway_url or DEFAULT_GATEWAY_URL).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.jwt}"
        return headers

    def _public_url(self, ipfs_hash: str) -> str:
        return f"{self.gateway_url}/ipfs/{ipfs_hash}"

    def _require_hash(self, url: str) -> str:
        ipfs_hash = extract_ipfs_hash(url)
        if not ipfs_hash:
            raise StorageError("Invalid IPFS URL format", ErrorCode.INVALID_URL, self.provider_type)
        return ipfs_hash

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Pinata upload error")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        file_name = filename or generate_filename()
        content_type = guess_content_type(file_name)
        metadata = {
            "name": file_name,
            "keyvalues": {
                "uploadedBy": UPLOADED_BY,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "source": "sdk-upload",
            },
        }

        logger.debug(f"上传文件到 Pinata: {file_name} ({len(file)} bytes)")
        async with self._client() as client:
            response = await client.post(
                f"{self.api_url}/pinning/pinFileToIPFS",
                files={"file": (file_name, file, content_type)},
                data={"pinataMetadata": json.dumps(metadata)},
            )

        if not response.is_success:
            raise StorageError(
                f"Pinata upload failed: {response.text}",
                ErrorCode.UPLOAD_FAILED,
                self.provider_type,
            )

        result = response.json()
        ipfs_hash = result.get("IpfsHash")
        if not ipfs_hash:
            raise StorageError(
                "Pinata upload succeeded but no IPFS hash returned",
                ErrorCode.NO_HASH_RETURNED,
                self.provider_type,
            )

        public_url = self._public_url(ipfs_hash)
        logger.info(f"Pinata上传成功: {public_url}")
        return UploadResult(
            url=public_url,
            size=len(file),
            content_type=content_type,
            metadata={
                "ipfs_hash": ipfs_hash,
                "file_name": file_name,
                "ipfs_url": f"ipfs://{ipfs_hash}",
                "gateway_url": public_url,
                "pinata_response": result,
            },
        )

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Pinata download error")
    async def download(self, locator: str) -> bytes:
        ipfs_hash = self._require_hash(locator)

        async with self._client() as client:
            response = await client.get(self._public_url(ipfs_hash))

        if not response.is_success:
            raise StorageError(
                f"Failed to download from IPFS: {response.status_code} {response.reason_phrase}",
                ErrorCode.DOWNLOAD_FAILED,
                self.provider_type,
            )
        return response.content

    @storage_operation(ErrorCode.LIST_ERROR, "Pinata list error")
    async def list(self, options: Optional[ListOptions] = None) -> List[FileDescriptor]:
        params: Dict[str, Any] = {
            "status": "pinned",
            "pageLimit": str((options.limit if options else None) or 10),
            "metadata": json.dumps({"keyvalues": {"uploadedBy": UPLOADED_BY}}),
        }
        if options and isinstance(options.offset, str) and options.offset:
            params["pageOffset"] = options.offset

        async with self._client() as client:
            response = await client.get(f"{self.api_url}/data/pinList", params=params)

        if not response.is_success:
            raise StorageError(
                f"Failed to list Pinata files: {response.text}",
                ErrorCode.LIST_FAILED,
                self.provider_type,
            )

        files = []
        for pin in response.json().get("rows", []):
            ipfs_hash = pin["ipfs_pin_hash"]
            pin_metadata = pin.get("metadata") or {}
            try:
                size = int(pin.get("size") or 0)
            except (TypeError, ValueError):
                size = 0
            files.append(FileDescriptor(
                id=ipfs_hash,
                name=pin_metadata.get("name") or "Unnamed",
                url=self._public_url(ipfs_hash),
                size=size,
                created_at=pin["date_pinned"],
                metadata={
                    "ipfs_hash": ipfs_hash,
                    "ipfs_url": f"ipfs://{ipfs_hash}",
                    "gateway_url": self._public_url(ipfs_hash),
                    "pinata_metadata": pin.get("metadata"),
                },
            ))
        return files

    @storage_operation(ErrorCode.DELETE_ERROR, "Pinata delete error")
    async def delete(self, locator: str) -> bool:
        ipfs_hash = self._require_hash(locator)

        async with self._client() as client:
            response = await client.delete(f"{self.api_url}/pinning/unpin/{ipfs_hash}")

        # 已经取消固定的内容返回 404，视为删除成功
        if not response.is_success and response.status_code != 404:
            raise StorageError(
                f"Failed to delete from Pinata: {response.text}",
                ErrorCode.DELETE_FAILED,
                self.provider_type,
            )
        logger.info(f"Pinata 已取消固定: {ipfs_hash}")
        return True

    async def test_connection(self) -> Dict[str, Any]:
        """测试 JWT 是否有效，不抛出异常"""
        try:
            async with self._client() as client:
                response = await client.get(f"{self.api_url}/data/testAuthentication")
            if not response.is_success:
                return {"success": False, "error": f"Authentication failed: {response.text}"}
            return {"success": True, "data": response.json()}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Pinata 连接测试失败: {e}")
            return {"success": False, "error": str(e)}

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="Pinata IPFS",
            type="pinata",
            requires_auth=True,
            features=ProviderFeatures(upload=True, download=True, list=True, delete=True),
        )
