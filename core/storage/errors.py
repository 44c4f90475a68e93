"""
存储错误类型 - 所有存储操作统一抛出 StorageError
"""
import functools
from typing import Optional


class ErrorCode:
    """存储错误码"""

    # 管理器
    NO_PROVIDER = "NO_PROVIDER"
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"

    # 能力 / 回调校验
    NOT_SUPPORTED = "NOT_SUPPORTED"
    INVALID_UPLOAD_RESULT = "INVALID_UPLOAD_RESULT"
    INVALID_DOWNLOAD_RESULT = "INVALID_DOWNLOAD_RESULT"

    # 通用包装
    UPLOAD_ERROR = "UPLOAD_ERROR"
    DOWNLOAD_ERROR = "DOWNLOAD_ERROR"
    LIST_ERROR = "LIST_ERROR"
    DELETE_ERROR = "DELETE_ERROR"

    # 服务商返回非成功状态
    UPLOAD_FAILED = "UPLOAD_FAILED"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    LIST_FAILED = "LIST_FAILED"
    DELETE_FAILED = "DELETE_FAILED"

    INVALID_URL = "INVALID_URL"
    NO_HASH_RETURNED = "NO_HASH_RETURNED"
    NO_IDENTIFIER_RETURNED = "NO_IDENTIFIER_RETURNED"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"

    # 配置
    MISSING_CONFIG = "MISSING_CONFIG"
    MISSING_CALLBACKS = "MISSING_CALLBACKS"

    # 服务商辅助操作
    LINK_CREATION_FAILED = "LINK_CREATION_FAILED"
    TOKEN_REFRESH_FAILED = "TOKEN_REFRESH_FAILED"
    FOLDER_ERROR = "FOLDER_ERROR"


class StorageError(Exception):
    """存储操作错误，调用方根据 code 分支处理"""

    def __init__(self, message: str, code: str, provider: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.provider = provider
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __reduce__(self):
        return (self.__class__, (self.message, self.code, self.provider, self.cause))

    def __repr__(self) -> str:
        return f"StorageError(code={self.code!r}, provider={self.provider!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "provider": self.provider,
        }


def storage_operation(code: str, label: str):
    """
    存储操作装饰器：StorageError 原样抛出，其它异常包装为带 code 的 StorageError

    被装饰的方法所属对象需提供 provider_type 属性。

    Args:
        code: 包装时使用的错误码，如 UPLOAD_ERROR
        label: 错误消息前缀，如 "Pinata upload error"
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(
                    f"{label}: {e}",
                    code,
                    self.provider_type,
                    cause=e,
                ) from e
        return wrapper
    return decorator
