"""
存储异常处理
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from core.storage import ErrorCode, StorageError

STATUS_BY_CODE = {
    ErrorCode.PROVIDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NO_PROVIDER: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.NOT_SUPPORTED: status.HTTP_501_NOT_IMPLEMENTED,
    ErrorCode.INVALID_URL: status.HTTP_400_BAD_REQUEST,
}


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """StorageError 转换为 JSON 响应，按错误码映射 HTTP 状态"""
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_502_BAD_GATEWAY)

    logger.error(f"❌ 存储操作失败 [{exc.provider}] {exc.code}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"success": False, **exc.to_dict()},
    )
