"""
Inspection API
检查API - 供测试工具查询模拟设备上的应用状态，或强制设置状态
"""
from fastapi import APIRouter, FastAPI, HTTPException, Query, status
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, Field

from config.settings import settings
from xcast_simulator.core_application.application import ApplicationState
from xcast_simulator.core_application.application_registry import ApplicationRegistry
from xcast_simulator.core_application.request_router import RequestRouter
from xcast_simulator.external_services.xcast_connection import XcastConnection

logger = logging.getLogger(__name__)


# Pydantic模型
class ApplicationInfo(BaseModel):
    """应用实体信息"""
    applicationName: str
    applicationId: str
    state: ApplicationState
    activity: Optional[str] = None
    notificationSequence: int
    pendingActions: int


class ForceStateRequest(BaseModel):
    """强制设置状态请求"""
    state: ApplicationState = Field(..., description="目标状态")
    notify: bool = Field(True, description="是否向控制端发送状态变更通知")


class WaitResult(BaseModel):
    """状态等待结果"""
    applicationName: str
    state: ApplicationState
    reached: bool


def create_inspection_app(
    registry: ApplicationRegistry,
    connection: Optional[XcastConnection] = None,
    request_router: Optional[RequestRouter] = None
) -> FastAPI:
    """创建绑定到指定注册表的检查API"""
    app = FastAPI(
        title=settings.app_name,
        description="Xcast 模拟设备检查 API",
        version=settings.app_version
    )
    router = APIRouter(prefix="/api/applications", tags=["Applications"])

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        """健康检查"""
        return {
            "status": "ok",
            "simulate_latency": registry.simulate_latency,
            "applications": len(registry),
            "connection": connection.status() if connection else None,
            "router": request_router.get_stats() if request_router else None,
        }

    @router.get("", response_model=List[ApplicationInfo])
    async def list_applications():
        """列出所有应用实体"""
        return registry.snapshot()

    @router.get("/{name}", response_model=ApplicationInfo)
    async def get_application(name: str, application_id: str = Query("", alias="applicationId")):
        """获取单个应用实体"""
        application = registry.get(name, application_id)
        if application is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Application '{name}' not found"
            )
        return application.snapshot()

    @router.post("/{name}/force", response_model=ApplicationInfo)
    async def force_application_state(
        name: str,
        request: ForceStateRequest,
        application_id: str = Query("", alias="applicationId")
    ):
        """强制设置应用状态（绕过转换规则）"""
        application = registry.get_or_create(name, application_id)
        await application.force_state(request.state, notify=request.notify)
        logger.info(f"🔧 API forced {name} to {request.state.value}")
        return application.snapshot()

    @router.get("/{name}/wait", response_model=WaitResult)
    async def wait_for_application_state(
        name: str,
        state: ApplicationState,
        timeout_ms: int = Query(5000, ge=0, le=120000),
        application_id: str = Query("", alias="applicationId")
    ):
        """等待应用达到指定状态"""
        reached = await registry.wait_for_state(name, state, timeout_ms / 1000, application_id)
        return WaitResult(applicationName=name, state=state, reached=reached)

    app.include_router(router)
    return app
