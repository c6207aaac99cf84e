"""
应用实体注册表
Application Registry

会话持有的 名称 → Application 映射：
1. 首次引用时惰性创建实体(默认 stopped)
2. 实体在会话生命周期内不会被移除
3. 默认仅按应用名称区分实体，可配置为 名称+applicationId
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from xcast_simulator.core_application.application import (
    Application, ApplicationState, Notifier, TransitionTimings
)

logger = logging.getLogger(__name__)


class ApplicationRegistry:
    """应用实体注册表"""

    def __init__(
        self,
        notifier: Notifier,
        notification_method: str,
        timings: Optional[TransitionTimings] = None,
        simulate_latency: bool = True,
        identity_includes_application_id: bool = False
    ):
        self.notifier = notifier
        self.notification_method = notification_method
        self.timings = timings or TransitionTimings()
        self.simulate_latency = simulate_latency
        self.identity_includes_application_id = identity_includes_application_id
        self._applications: Dict[str, Application] = {}

    def __len__(self) -> int:
        return len(self._applications)

    def __contains__(self, key: str) -> bool:
        return key in self._applications

    def identity_key(self, name: str, application_id: str = "") -> str:
        """计算实体键"""
        # applicationId 在 launch/state 请求中常为 ""，在 stop/hide 中常为 "0"
        if self.identity_includes_application_id:
            return f"{name}/{application_id or 'DEFAULT'}"
        return name

    def get(self, name: str, application_id: str = "") -> Optional[Application]:
        return self._applications.get(self.identity_key(name, application_id))

    def get_or_create(self, name: str, application_id: str = "") -> Application:
        """查找实体，不存在时创建"""
        key = self.identity_key(name, application_id)
        application = self._applications.get(key)
        if application is None:
            application = Application(
                name=name,
                application_id=application_id,
                notifier=self.notifier,
                notification_method=self.notification_method,
                timings=self.timings,
                simulate_latency=self.simulate_latency
            )
            self._applications[key] = application
            logger.info(f"🆕 Registered application {key} (total: {len(self._applications)})")
        return application

    def all(self) -> List[Application]:
        return list(self._applications.values())

    def snapshot(self) -> List[Dict[str, Any]]:
        return [application.snapshot() for application in self._applications.values()]

    async def wait_for_state(
        self,
        name: str,
        state: ApplicationState,
        timeout: float,
        application_id: str = ""
    ) -> bool:
        """等待指定应用达到目标状态"""
        application = self.get_or_create(name, application_id)
        reached = await application.wait_for_state(state, timeout)
        if not reached:
            logger.warning(
                f"⚠️ {name}: state {ApplicationState(state).value} not reached "
                f"within {timeout:.2f}s (current: {application.state.value})"
            )
        return reached

    async def join(self):
        """等待所有实体上已排队的动作完成"""
        await asyncio.gather(*(application.join() for application in self.all()))

    async def close(self):
        for application in self.all():
            await application.close()
        logger.info(f"🔴 Application registry closed ({len(self._applications)} applications)")
