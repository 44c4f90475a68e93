"""
存储管理器 - 统一管理多种存储提供商

管理器只负责按名称路由：解析提供商名称（显式指定或默认），
然后把调用原样委托给该提供商。不做重试、缓存或跨提供商降级。
"""
import warnings
from typing import Any, Dict, List, Optional

from loguru import logger

from config.settings import StorageSettings, load_storage_settings
from .base import StorageProvider
from .errors import ErrorCode, StorageError
from .types import FileDescriptor, ListOptions, ProviderConfig, UploadResult


class StorageManager:
    """存储管理器 - 统一管理多种存储提供商"""

    def __init__(self):
        self._providers: Dict[str, StorageProvider] = {}
        self._default_provider: Optional[str] = None

    def register(self, name: str, provider: StorageProvider, is_default: bool = False) -> None:
        """
        注册存储提供商

        同名注册会替换原有提供商。还没有默认提供商时，
        第一个注册的提供商自动成为默认。

        Args:
            name: 提供商名称（唯一）
            provider: 实现 StorageProvider 接口的实例
            is_default: 是否设为默认提供商
        """
        if name in self._providers:
            if name == self._default_provider and not is_default:
                logger.warning(f"⚠️ 替换默认存储提供商 '{name}' 的实例，默认指针保持不变")
            else:
                logger.info(f"替换已注册的存储提供商: {name}")

        self._providers[name] = provider

        if is_default or self._default_provider is None:
            self._default_provider = name
            logger.debug(f"默认存储提供商: {name}")

        logger.info(f"✅ 存储提供商已注册: {name}")

    def set_default_provider(self, name: str) -> None:
        """设置默认存储提供商，名称必须已注册"""
        if name not in self._providers:
            raise StorageError(
                f"Cannot set default provider '{name}': provider not registered",
                ErrorCode.PROVIDER_NOT_FOUND,
                "manager",
            )
        self._default_provider = name
        logger.info(f"默认存储提供商切换为: {name}")

    def get_provider(self, name: Optional[str] = None) -> StorageProvider:
        """
        获取存储提供商

        Args:
            name: 提供商名称，为 None 时使用默认提供商

        Raises:
            StorageError: NO_PROVIDER 未指定名称且没有默认提供商；
                PROVIDER_NOT_FOUND 名称未注册
        """
        provider_name = name if name is not None else self._default_provider

        if provider_name is None:
            raise StorageError(
                "No storage provider specified and no default provider set",
                ErrorCode.NO_PROVIDER,
                "manager",
            )

        provider = self._providers.get(provider_name)
        if provider is None:
            raise StorageError(
                f"Storage provider '{provider_name}' not found, available: {self.list_providers()}",
                ErrorCode.PROVIDER_NOT_FOUND,
                "manager",
            )
        return provider

    def list_providers(self) -> List[str]:
        """列出所有已注册的提供商名称（注册顺序）"""
        return list(self._providers.keys())

    def get_default_provider(self) -> Optional[str]:
        """获取默认提供商名称，未设置时返回 None"""
        return self._default_provider

    def get_provider_configs(self) -> Dict[str, ProviderConfig]:
        """获取所有提供商的配置描述"""
        return {name: provider.get_config() for name, provider in self._providers.items()}

    async def upload(self, file: bytes, filename: Optional[str] = None,
                     provider_name: Optional[str] = None) -> UploadResult:
        """上传数据到指定或默认提供商"""
        provider = self.get_provider(provider_name)
        return await provider.upload(file, filename)

    async def download(self, locator: str, provider_name: Optional[str] = None) -> bytes:
        """从指定或默认提供商下载数据"""
        provider = self.get_provider(provider_name)
        return await provider.download(locator)

    async def list(self, options: Optional[ListOptions] = None,
                   provider_name: Optional[str] = None) -> List[FileDescriptor]:
        """列出指定或默认提供商中的文件"""
        provider = self.get_provider(provider_name)
        return await provider.list(options)

    async def delete(self, locator: str, provider_name: Optional[str] = None) -> bool:
        """从指定或默认提供商删除文件"""
        provider = self.get_provider(provider_name)
        return await provider.delete(locator)

    def get_storage_providers(self) -> List[str]:
        """已废弃，使用 list_providers()"""
        warnings.warn(
            "get_storage_providers() is deprecated, use list_providers() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.list_providers()

    def get_default_storage_provider(self) -> Optional[str]:
        """已废弃，使用 get_default_provider()"""
        warnings.warn(
            "get_default_storage_provider() is deprecated, use get_default_provider() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.get_default_provider()


def build_storage_manager(settings: Optional[StorageSettings] = None) -> StorageManager:
    """
    根据配置创建存储管理器

    配置完整的提供商都会注册；STORAGE_PROVIDER 指定的提供商注册成功时设为默认。
    """
    settings = settings or load_storage_settings()
    manager = StorageManager()
    http_options: Dict[str, Any] = {
        "timeout": settings.http_timeout,
        "retries": settings.http_retries,
    }

    logger.debug(f"自动配置存储提供商，默认: {settings.default_provider}")

    if settings.pinata_jwt:
        from .providers.pinata import PinataStorage
        manager.register("pinata", PinataStorage(
            jwt=settings.pinata_jwt,
            api_url=settings.pinata_api_url,
            gateway_url=settings.pinata_gateway_url,
            **http_options,
        ))

    if settings.ipfs_api_endpoint:
        from .providers.ipfs import IPFSStorage
        manager.register("ipfs", IPFSStorage(
            api_endpoint=settings.ipfs_api_endpoint,
            api_key=settings.ipfs_api_key,
            jwt=settings.ipfs_jwt,
            gateway_url=settings.ipfs_gateway_url,
            **http_options,
        ))

    if settings.server_proxy_upload_url or settings.server_proxy_download_url:
        if settings.server_proxy_upload_url and settings.server_proxy_download_url:
            from .providers.server_proxy import ServerProxyStorage
            manager.register("server-proxy", ServerProxyStorage(
                upload_url=settings.server_proxy_upload_url,
                download_url=settings.server_proxy_download_url,
                **http_options,
            ))
        else:
            logger.warning(
                f"Server proxy 配置不完整: upload_url={bool(settings.server_proxy_upload_url)}, "
                f"download_url={bool(settings.server_proxy_download_url)}"
            )

    if settings.server_ipfs_upload_endpoint:
        from .providers.server_ipfs import ServerIPFSStorage
        manager.register("server-ipfs", ServerIPFSStorage(
            upload_endpoint=settings.server_ipfs_upload_endpoint,
            base_url=settings.server_ipfs_base_url,
            **http_options,
        ))

    if settings.dropbox_access_token:
        from .providers.dropbox import DropboxStorage
        manager.register("dropbox", DropboxStorage(
            access_token=settings.dropbox_access_token,
            root_path=settings.dropbox_root_path,
            **http_options,
        ))

    if settings.google_drive_access_token:
        from .providers.google_drive import GoogleDriveStorage
        manager.register("google-drive", GoogleDriveStorage(
            access_token=settings.google_drive_access_token,
            folder_id=settings.google_drive_folder_id,
            refresh_token=settings.google_drive_refresh_token,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            **http_options,
        ))

    default_name = settings.default_provider
    if default_name:
        if default_name in manager.list_providers():
            manager.set_default_provider(default_name)
        else:
            logger.warning(f"⚠️ 默认存储提供商 '{default_name}' 未配置，可用: {manager.list_providers()}")

    if manager.list_providers():
        logger.info(f"存储管理器已配置: {manager.list_providers()}, 默认: {manager.get_default_provider()}")
    else:
        logger.warning("未配置任何存储提供商，文件上传将不可用")

    return manager
