"""
Xcast protocol configuration settings
集中管理Xcast插件协议相关的常量、时序与连接配置
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pydantic import Field


XCAST_EVENTS = [
    "onApplicationLaunchRequest",
    "onApplicationHideRequest",
    "onApplicationResumeRequest",
    "onApplicationStopRequest",
    "onApplicationStateRequest",
]


class XcastConfig(BaseSettings):
    """Xcast配置类 - 管理插件命名空间、事件与模拟时序"""

    # ==================== 连接配置 ====================

    ws_port: int = Field(
        default=9998,
        description="设备上Thunder WebSocket端口"
    )
    service_path: str = Field(
        default="/Service/org.rdk.Xcast",
        description="Xcast插件的WebSocket服务路径"
    )
    ws_subprotocol: str = Field(
        default="jsonrpc",
        description="WebSocket子协议"
    )

    # WebSocket重连配置
    ws_max_retries: int = Field(
        default=10,
        description="WebSocket最大重连次数"
    )
    ws_initial_retry_delay: float = Field(
        default=1.0,
        description="WebSocket初始重连延迟(秒)"
    )
    ws_max_retry_delay: float = Field(
        default=60.0,
        description="WebSocket最大重连延迟(秒)"
    )
    ws_ping_interval: float = Field(
        default=30.0,
        description="WebSocket ping间隔(秒)"
    )
    ws_ping_timeout: float = Field(
        default=20.0,
        description="WebSocket ping超时(秒)"
    )
    ws_connection_timeout: float = Field(
        default=10.0,
        description="WebSocket连接超时(秒)"
    )
    shutdown_drain_timeout: float = Field(
        default=2.0,
        description="退出前等待注销消息发送完成的超时(秒)"
    )

    # ==================== 协议配置 ====================

    namespace: str = Field(
        default="org.rdk.Xcast.1",
        description="Xcast插件的JSON-RPC命名空间"
    )
    subscriber_id: str = Field(
        default="bumshakalaka",
        description="事件订阅者ID，同时是入站命令的方法前缀"
    )
    events: List[str] = Field(
        default_factory=lambda: list(XCAST_EVENTS),
        description="注册的事件列表"
    )
    state_changed_event: str = Field(
        default="onApplicationStateChanged",
        description="状态变更通知的方法名"
    )
    identity_includes_application_id: bool = Field(
        default=False,
        description="应用实体是否按 名称+applicationId 区分 (默认仅按名称)"
    )

    # ==================== 模拟时序配置 ====================

    launch_delay_ms: int = Field(
        default=5000,
        description="启动完成的模拟延迟(毫秒)"
    )
    hide_delay_ms: int = Field(
        default=2000,
        description="隐藏完成的模拟延迟(毫秒)"
    )
    stop_delay_ms: int = Field(
        default=5000,
        description="停止完成的模拟延迟(毫秒)"
    )
    state_request_delay_ms: int = Field(
        default=250,
        description="状态查询响应的模拟延迟(毫秒)"
    )

    # ==================== 实用方法 ====================

    def get_service_url(self, host: str) -> str:
        """获取设备上Xcast插件的WebSocket URL"""
        return f"ws://{host}:{self.ws_port}{self.service_path}"

    def get_command_prefix(self) -> str:
        """入站命令的方法前缀"""
        return f"{self.subscriber_id}."

    def get_state_changed_method(self) -> str:
        """状态变更通知的完整方法名"""
        return f"{self.namespace}.{self.state_changed_event}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="XCAST_",  # 环境变量前缀
        case_sensitive=False,
        extra="ignore"  # 忽略额外字段，避免与主配置冲突
    )


# 全局配置实例
xcast_config = XcastConfig()
