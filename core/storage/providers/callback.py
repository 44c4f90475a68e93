"""
回调存储提供商 - 所有操作委托给调用方提供的函数

调用方可以用任意方式实现存储（HTTP、云 SDK、本地磁盘等），
无需修改 SDK 即可接入 StorageManager。

示例:
    async def upload(data: bytes, filename: str = None):
        async with httpx.AsyncClient() as client:
            response = await client.post("/api/storage/upload", files={"file": (filename, data)})
            body = response.json()
            return {"url": body["url"], "size": len(data)}

    async def download(identifier: str) -> bytes:
        ...

    storage = CallbackStorage(upload=upload, download=download)
"""
import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..base import StorageProvider
from ..errors import ErrorCode, StorageError, storage_operation
from ..types import (
    DEFAULT_CONTENT_TYPE,
    CallbackListResult,
    FileDescriptor,
    ListOptions,
    ProviderConfig,
    ProviderFeatures,
    UploadResult,
)

UploadCallback = Callable[[bytes, Optional[str]], Union[Any, Awaitable[Any]]]
DownloadCallback = Callable[[str], Union[bytes, Awaitable[bytes]]]
ListCallback = Callable[[Optional[str], Optional[ListOptions]], Union[Any, Awaitable[Any]]]
DeleteCallback = Callable[[str], Union[bool, Awaitable[bool]]]
ExtractIdentifier = Callable[[str], str]


async def _resolve(value):
    """同步回调直接返回结果，异步回调等待结果"""
    if inspect.isawaitable(value):
        return await value
    return value


class CallbackStorage(StorageProvider):
    """委托给用户回调的存储提供商"""

    provider_type = "callback-storage"

    def __init__(
        self,
        upload: Optional[UploadCallback] = None,
        download: Optional[DownloadCallback] = None,
        list: Optional[ListCallback] = None,
        delete: Optional[DeleteCallback] = None,
        extract_identifier: Optional[ExtractIdentifier] = None,
    ):
        if upload is None or download is None:
            raise StorageError(
                "CallbackStorage requires both upload and download callbacks",
                ErrorCode.MISSING_CALLBACKS,
                self.provider_type,
            )
        self._upload = upload
        self._download = download
        self._list = list
        self._delete = delete
        self._extract_identifier = extract_identifier

    def _identifier(self, locator: str) -> str:
        if self._extract_identifier is None:
            return locator
        return self._extract_identifier(locator)

    @storage_operation(ErrorCode.UPLOAD_ERROR, "Upload failed")
    async def upload(self, file: bytes, filename: Optional[str] = None) -> UploadResult:
        result = await _resolve(self._upload(file, filename))
        upload_result = self._validate_upload_result(result)
        logger.debug(f"回调上传完成: {upload_result.url}")
        return upload_result

    def _validate_upload_result(self, result: Any) -> UploadResult:
        if isinstance(result, UploadResult):
            upload_result = result
        elif isinstance(result, Mapping):
            try:
                upload_result = UploadResult.model_validate(dict(result))
            except ValidationError as e:
                raise StorageError(
                    f"Upload callback returned invalid result: {e.error_count()} validation error(s)",
                    ErrorCode.INVALID_UPLOAD_RESULT,
                    self.provider_type,
                    cause=e,
                ) from e
        else:
            raise StorageError(
                f"Upload callback returned invalid result: expected a mapping, got {type(result).__name__}",
                ErrorCode.INVALID_UPLOAD_RESULT,
                self.provider_type,
            )

        if not upload_result.url or not upload_result.url.strip():
            raise StorageError(
                "Upload callback returned invalid result: missing or empty url",
                ErrorCode.INVALID_UPLOAD_RESULT,
                self.provider_type,
            )
        return upload_result

    @storage_operation(ErrorCode.DOWNLOAD_ERROR, "Download failed")
    async def download(self, locator: str) -> bytes:
        identifier = self._identifier(locator)
        data = await _resolve(self._download(identifier))

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise StorageError(
                f"Download callback returned invalid result: expected bytes, got {type(data).__name__}",
                ErrorCode.INVALID_DOWNLOAD_RESULT,
                self.provider_type,
            )
        return bytes(data)

    async def list(self, options: Optional[ListOptions] = None) -> List[FileDescriptor]:
        if self._list is None:
            raise StorageError(
                "List operation not supported - no list callback provided",
                ErrorCode.NOT_SUPPORTED,
                self.provider_type,
            )
        return await self._list_files(options)

    @storage_operation(ErrorCode.LIST_ERROR, "List failed")
    async def _list_files(self, options: Optional[ListOptions]) -> List[FileDescriptor]:
        name_pattern = options.name_pattern if options else None
        raw = await _resolve(self._list(name_pattern, options))

        if isinstance(raw, CallbackListResult):
            result = raw
        else:
            result = CallbackListResult.model_validate(raw)

        now = datetime.now(timezone.utc)
        files = []
        for index, item in enumerate(result.items):
            files.append(FileDescriptor(
                id=item.identifier,
                name=item.identifier.split("/")[-1] or f"file-{index}",
                url=item.identifier,
                size=item.size or 0,
                content_type=DEFAULT_CONTENT_TYPE,
                created_at=item.last_modified or now,
                metadata=item.metadata,
            ))
        return files

    async def delete(self, locator: str) -> bool:
        if self._delete is None:
            raise StorageError(
                "Delete operation not supported - no delete callback provided",
                ErrorCode.NOT_SUPPORTED,
                self.provider_type,
            )
        return await self._delete_file(locator)

    @storage_operation(ErrorCode.DELETE_ERROR, "Delete failed")
    async def _delete_file(self, locator: str) -> bool:
        identifier = self._identifier(locator)
        return bool(await _resolve(self._delete(identifier)))

    def get_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="callback-storage",
            type="callback",
            requires_auth=False,
            features=ProviderFeatures(
                upload=True,
                download=True,
                list=self._list is not None,
                delete=self._delete is not None,
            ),
        )
