"""
存储相关API路由

upload / download 的请求和响应格式与 ServerProxyStorage 对齐，
客户端把这两个地址配置为 upload_url / download_url 即可。
"""
from typing import Optional

from fastapi import APIRouter, File, Form, Query, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from core.storage import ListOptions, StorageManager, guess_content_type

router = APIRouter(prefix="/storage")


class DownloadRequest(BaseModel):
    """下载请求"""
    identifier: str = Field(..., description="上传时返回的定位符")
    provider: Optional[str] = Field(default=None, description="存储提供商名称，为空使用默认")


def get_manager(request: Request) -> StorageManager:
    return request.app.state.storage_manager


@router.get("/providers")
async def list_providers(request: Request):
    """列出已注册的存储提供商"""
    manager = get_manager(request)
    return {
        "providers": manager.list_providers(),
        "default": manager.get_default_provider(),
        "configs": {
            name: config.model_dump()
            for name, config in manager.get_provider_configs().items()
        },
    }


@router.post("/upload")
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    name: Optional[str] = Form(default=None),
    provider: Optional[str] = Query(default=None),
):
    """上传文件"""
    data = await file.read()
    filename = name or file.filename
    result = await get_manager(request).upload(data, filename, provider)
    return {
        "success": True,
        "identifier": result.url,
        "url": result.url,
        "size": result.size,
        "content_type": result.content_type,
    }


@router.post("/download")
async def download_file(request: Request, body: DownloadRequest):
    """下载文件，返回原始内容"""
    data = await get_manager(request).download(body.identifier, body.provider)
    media_type = guess_content_type(body.identifier.split("?")[0])
    return Response(content=data, media_type=media_type)


@router.get("/files")
async def list_files(
    request: Request,
    name_pattern: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: Optional[str] = Query(default=None),
    provider: Optional[str] = Query(default=None),
):
    """列出文件"""
    options = ListOptions(name_pattern=name_pattern, limit=limit, offset=offset)
    files = await get_manager(request).list(options, provider)
    return {
        "success": True,
        "files": [f.model_dump(mode="json") for f in files],
    }


@router.delete("/files")
async def delete_file(
    request: Request,
    url: str = Query(...),
    provider: Optional[str] = Query(default=None),
):
    """删除文件"""
    deleted = await get_manager(request).delete(url, provider)
    return {"success": deleted}
