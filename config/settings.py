"""
Application Configuration Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # 应用基础配置
    app_name: str = "Xcast Device Simulator"
    app_version: str = "1.0.0"
    debug: bool = False

    # 目标设备地址 (环境变量 CPE_HOST)，启动时必须提供
    cpe_host: Optional[str] = None

    # 模拟模式: True 为带延迟的异步设备, False 为即时响应
    simulate_latency: bool = True

    # 操作员控制台
    console_enabled: bool = False

    # 检查API配置
    api_enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8010

    # 日志配置
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        # 自动将环境变量转换为小写
        case_sensitive=False,
        extra="ignore"
    )

    def get_api_url(self) -> str:
        """获取检查API的完整URL"""
        return f"http://{self.host}:{self.port}"


settings = Settings()
