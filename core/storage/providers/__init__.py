"""
存储提供商模块 - 导出所有存储提供商
"""
from .callback import CallbackStorage
from .dropbox import DropboxStorage
from .google_drive import GoogleDriveStorage
from .http_base import HttpStorageProvider
from .ipfs import IPFSStorage
from .pinata import PinataStorage
from .server_ipfs import ServerIPFSStorage
from .server_proxy import ServerProxyStorage

__all__ = [
    'CallbackStorage',
    'DropboxStorage',
    'GoogleDriveStorage',
    'HttpStorageProvider',
    'IPFSStorage',
    'PinataStorage',
    'ServerIPFSStorage',
    'ServerProxyStorage',
]
