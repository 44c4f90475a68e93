"""
健康检查路由
"""
from datetime import datetime
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """健康检查"""
    manager = request.app.state.storage_manager
    providers = manager.list_providers()
    return {
        "status": "healthy" if providers else "degraded",
        "providers": providers,
        "default_provider": manager.get_default_provider(),
        "timestamp": datetime.now().isoformat()
    }
