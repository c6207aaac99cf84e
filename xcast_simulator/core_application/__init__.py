"""
Core Application Layer Package

主要组件：
- Application: 单个应用的生命周期状态机
- ApplicationRegistry: 会话持有的应用实体注册表
- RequestRouter: 入站Xcast命令路由器
"""

from .application import Activity, Application, ApplicationState, TransitionTimings
from .application_registry import ApplicationRegistry
from .exceptions import MalformedMessageError, UnknownOperationError
from .request_router import RequestRouter

__all__ = [
    # 状态机
    "Activity", "Application", "ApplicationState", "TransitionTimings",
    "ApplicationRegistry",

    # 路由
    "RequestRouter",
    "MalformedMessageError", "UnknownOperationError"
]
