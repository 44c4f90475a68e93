"""
基于 HTTP 的存储提供商基类
"""
import re
from typing import Dict, List, Optional

import httpx
from httpx_retries import Retry, RetryTransport

from ..base import StorageProvider

USER_AGENT = "DataWallet-Storage/1.0"

# 网关 URL、ipfs:// 或裸 CID
IPFS_HASH_PATTERNS: List[re.Pattern] = [
    re.compile(r"ipfs/([a-zA-Z0-9]+)"),
    re.compile(r"^ipfs://([a-zA-Z0-9]+)$"),
    re.compile(r"^([a-zA-Z0-9]{46,})$"),
]


def extract_ipfs_hash(url: str) -> Optional[str]:
    """从各种 IPFS URL 格式中提取 CID"""
    for pattern in IPFS_HASH_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


class HttpStorageProvider(StorageProvider):
    """
    HTTP 存储提供商基类

    每次请求创建一个 httpx.AsyncClient，默认使用带重试的传输层
    （httpx_retries 只重试幂等方法，上传的 POST 请求不会被重放）。
    测试时可以注入 transport，例如 httpx.MockTransport。
    """

    def __init__(self, timeout: float = 60.0, retries: int = 3,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = httpx.Timeout(timeout=timeout, connect=min(timeout, 30.0))
        self.retries = retries
        self._transport = transport

    def _build_transport(self) -> httpx.AsyncBaseTransport:
        if self._transport is not None:
            return self._transport
        retry = Retry(total=self.retries, backoff_factor=0.5)
        return RetryTransport(retry=retry)

    def _headers(self) -> Dict[str, str]:
        """默认请求头，子类可追加认证信息"""
        return {"User-Agent": USER_AGENT}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._build_transport(),
            headers=self._headers(),
            timeout=self.timeout,
        )
