"""
应用配置设置
"""
import os
from dataclasses import dataclass
from typing import Optional


def get_env_bool(key: str, default: bool = False) -> bool:
    """获取布尔类型环境变量"""
    return os.getenv(key, str(default)).lower() in ('true', '1', 'yes', 'on')


def get_env_int(key: str, default: int) -> int:
    """获取整数类型环境变量"""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float) -> float:
    """获取浮点类型环境变量"""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_env_str(key: str) -> Optional[str]:
    """获取字符串环境变量，空字符串视为未设置"""
    value = os.getenv(key, '').strip()
    return value or None


# 服务器配置
DEFAULT_HOST = os.getenv('HOST', '127.0.0.1')
DEFAULT_PORT = get_env_int('PORT', 8001)

# 日志配置
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')
LOG_TO_FILE = get_env_bool('LOG_TO_FILE', True)

# 存储 HTTP 客户端配置
STORAGE_HTTP_TIMEOUT = get_env_float('STORAGE_HTTP_TIMEOUT', 60.0)
STORAGE_HTTP_RETRIES = get_env_int('STORAGE_HTTP_RETRIES', 3)


@dataclass(frozen=True)
class StorageSettings:
    """存储提供商配置，字段为空表示该提供商未配置"""
    default_provider: Optional[str] = None

    # Pinata
    pinata_jwt: Optional[str] = None
    pinata_api_url: Optional[str] = None
    pinata_gateway_url: Optional[str] = None

    # 通用 IPFS pinning 服务
    ipfs_api_endpoint: Optional[str] = None
    ipfs_api_key: Optional[str] = None
    ipfs_jwt: Optional[str] = None
    ipfs_gateway_url: Optional[str] = None

    # 服务端代理
    server_proxy_upload_url: Optional[str] = None
    server_proxy_download_url: Optional[str] = None

    # 服务端托管 IPFS
    server_ipfs_upload_endpoint: Optional[str] = None
    server_ipfs_base_url: Optional[str] = None

    # Dropbox
    dropbox_access_token: Optional[str] = None
    dropbox_root_path: Optional[str] = None

    # Google Drive
    google_drive_access_token: Optional[str] = None
    google_drive_folder_id: Optional[str] = None
    google_drive_refresh_token: Optional[str] = None
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None

    http_timeout: float = 60.0
    http_retries: int = 3


def load_storage_settings() -> StorageSettings:
    """从环境变量读取存储配置"""
    return StorageSettings(
        default_provider=get_env_str('STORAGE_PROVIDER'),
        pinata_jwt=get_env_str('PINATA_JWT'),
        pinata_api_url=get_env_str('PINATA_API_URL'),
        pinata_gateway_url=get_env_str('PINATA_GATEWAY_URL'),
        ipfs_api_endpoint=get_env_str('IPFS_API_ENDPOINT'),
        ipfs_api_key=get_env_str('IPFS_API_KEY'),
        ipfs_jwt=get_env_str('IPFS_JWT'),
        ipfs_gateway_url=get_env_str('IPFS_GATEWAY_URL'),
        server_proxy_upload_url=get_env_str('SERVER_PROXY_UPLOAD_URL'),
        server_proxy_download_url=get_env_str('SERVER_PROXY_DOWNLOAD_URL'),
        server_ipfs_upload_endpoint=get_env_str('SERVER_IPFS_UPLOAD_ENDPOINT'),
        server_ipfs_base_url=get_env_str('SERVER_IPFS_BASE_URL'),
        dropbox_access_token=get_env_str('DROPBOX_ACCESS_TOKEN'),
        dropbox_root_path=get_env_str('DROPBOX_ROOT_PATH'),
        google_drive_access_token=get_env_str('GOOGLE_DRIVE_ACCESS_TOKEN'),
        google_drive_folder_id=get_env_str('GOOGLE_DRIVE_FOLDER_ID'),
        google_drive_refresh_token=get_env_str('GOOGLE_DRIVE_REFRESH_TOKEN'),
        google_client_id=get_env_str('GOOGLE_CLIENT_ID'),
        google_client_secret=get_env_str('GOOGLE_CLIENT_SECRET'),
        http_timeout=get_env_float('STORAGE_HTTP_TIMEOUT', STORAGE_HTTP_TIMEOUT),
        http_retries=get_env_int('STORAGE_HTTP_RETRIES', STORAGE_HTTP_RETRIES),
    )
