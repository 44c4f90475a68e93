"""
存储数据结构定义
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadResult(BaseModel):
    """
    上传结果

    url 是后续 download/delete 使用的定位符，格式由提供商决定，例如:
    ipfs://<cid>、https://gateway.pinata.cloud/ipfs/<cid>
    """
    url: str
    size: int = 0
    content_type: str = DEFAULT_CONTENT_TYPE
    metadata: Optional[Dict[str, Any]] = None


class FileDescriptor(BaseModel):
    """list 返回的文件描述"""
    id: str
    name: str
    url: str
    size: int = 0
    content_type: str = DEFAULT_CONTENT_TYPE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Optional[Dict[str, Any]] = None


class ListOptions(BaseModel):
    """列表过滤和分页参数，具体语义（精确 / 子串 / 通配）由提供商决定"""
    name_pattern: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[Union[str, int]] = None


class ProviderFeatures(BaseModel):
    upload: bool = True
    download: bool = True
    list: bool = False
    delete: bool = False


class ProviderConfig(BaseModel):
    """提供商配置描述"""
    name: str
    type: str
    requires_auth: bool = False
    features: ProviderFeatures = Field(default_factory=ProviderFeatures)


class CallbackListItem(BaseModel):
    """list 回调返回的单个条目"""
    identifier: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class CallbackListResult(BaseModel):
    items: List[CallbackListItem] = Field(default_factory=list)
