"""
存储模块 - 统一导出所有存储相关类和函数
"""
from .base import StorageProvider, generate_filename, guess_content_type
from .errors import ErrorCode, StorageError, storage_operation
from .manager import StorageManager, build_storage_manager
from .types import (
    CallbackListItem,
    CallbackListResult,
    FileDescriptor,
    ListOptions,
    ProviderConfig,
    ProviderFeatures,
    UploadResult,
)
from .providers import (
    CallbackStorage,
    DropboxStorage,
    GoogleDriveStorage,
    IPFSStorage,
    PinataStorage,
    ServerIPFSStorage,
    ServerProxyStorage,
)

__all__ = [
    # 基类
    'StorageProvider',
    'generate_filename',
    'guess_content_type',

    # 错误
    'ErrorCode',
    'StorageError',
    'storage_operation',

    # 数据结构
    'UploadResult',
    'FileDescriptor',
    'ListOptions',
    'ProviderConfig',
    'ProviderFeatures',
    'CallbackListItem',
    'CallbackListResult',

    # 管理器
    'StorageManager',
    'build_storage_manager',

    # 存储提供商
    'CallbackStorage',
    'DropboxStorage',
    'GoogleDriveStorage',
    'IPFSStorage',
    'PinataStorage',
    'ServerIPFSStorage',
    'ServerProxyStorage',
]
