"""
FastAPI 应用服务器 - 存储服务端代理
"""
from typing import Optional

from fastapi import FastAPI

from api.exception_handlers import storage_exception_handler
from api.routes import health, storage
from core.storage import StorageError, StorageManager, build_storage_manager


def create_app(storage_manager: Optional[StorageManager] = None) -> FastAPI:
    """创建应用，storage_manager 为空时根据环境变量构建"""
    app = FastAPI(
        title="DataWallet Storage API",
        description="多存储提供商的服务端代理，接口与 ServerProxyStorage 对齐",
        version="1.0.0"
    )
    if storage_manager is None:
        storage_manager = build_storage_manager()
    app.state.storage_manager = storage_manager

    app.add_exception_handler(StorageError, storage_exception_handler)

    # 注册路由
    app.include_router(health.router, prefix="/api")
    app.include_router(storage.router, prefix="/api")

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "message": "DataWallet Storage API Server",
            "version": "1.0.0",
            "docs": "/docs"
        }

    return app
