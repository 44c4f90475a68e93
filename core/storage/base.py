"""
存储提供商抽象基类
"""
import mimetypes
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from .errors import ErrorCode, StorageError
from .types import DEFAULT_CONTENT_TYPE, FileDescriptor, ListOptions, ProviderConfig, UploadResult

DEFAULT_FILE_PREFIX = "datawallet-file"

OPERATIONS = ("upload", "download", "list", "delete")


def generate_filename(prefix: str = DEFAULT_FILE_PREFIX, ext: str = "dat") -> str:
    """生成默认文件名: <prefix>-<毫秒时间戳>.<ext>"""
    return f"{prefix}-{int(time.time() * 1000)}.{ext}"


def guess_content_type(filename: Optional[str]) -> str:
    """根据文件名推断 Content-Type"""
    if not filename:
        return DEFAULT_CONTENT_TYPE
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


class StorageProvider(ABC):
    """
    存储提供商抽象基类

    upload / download / get_config 必须实现；list / delete 为可选能力，
    未实现时抛出 NOT_SUPPORTED，而不是静默返回空结果。
    调用前可以通过 supports() 查询能力。
    """

    provider_type: str = "unknown"

    @abstractmethod
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        """上传数据，返回包含定位符的 UploadResult"""

    @abstractmethod
    async def download(self, locator: str) -> bytes:
        """根据 upload 返回的定位符下载数据"""

    async def list(self, options: Optional[ListOptions] = None) -> List[FileDescriptor]:
        """列出文件"""
        raise self._not_supported("list")

    async def delete(self, locator: str) -> bool:
        """删除文件"""
        raise self._not_supported("delete")

    @abstractmethod
    def get_config(self) -> ProviderConfig:
        """返回提供商配置描述（纯函数，无副作用）"""

    def supports(self, operation: str) -> bool:
        """查询是否支持某个操作: upload / download / list / delete"""
        if operation not in OPERATIONS:
            return False
        return bool(getattr(self.get_config().features, operation))

    def _not_supported(self, operation: str) -> StorageError:
        name = self.get_config().name
        return StorageError(
            f"{name} does not support the {operation} operation",
            ErrorCode.NOT_SUPPORTED,
            self.provider_type,
        )
