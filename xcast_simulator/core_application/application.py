"""
应用生命周期状态机
Application Lifecycle State Machine

负责：
1. 跟踪单个远程应用的状态(stopped/running/hidden)与进行中的活动
2. 校验生命周期命令的合法转换
3. 模拟异步完成延迟，同一实体上的定时动作串行执行
4. 每次完成的转换发出且仅发出一次状态变更通知
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional

from xcast_simulator.async_execution.action_queue import ActionQueue
from xcast_simulator.config.xcast_config import XcastConfig
from xcast_simulator.core_application.exceptions import UnknownOperationError
from xcast_simulator.core_application.jsonrpc_models import build_state_changed_notification

logger = logging.getLogger(__name__)

Notifier = Callable[[str], Awaitable[None]]


class ApplicationState(str, Enum):
    """应用状态"""
    STOPPED = "stopped"
    RUNNING = "running"
    HIDDEN = "hidden"


class Activity(str, Enum):
    """进行中的转换"""
    STARTING = "starting"
    HIDING = "hiding"
    STOPPING = "stopping"


@dataclass(frozen=True)
class TransitionTimings:
    """模拟延迟(秒)"""
    launch_delay: float = 5.0
    hide_delay: float = 2.0
    stop_delay: float = 5.0
    state_request_delay: float = 0.25

    @classmethod
    def from_config(cls, config: XcastConfig) -> "TransitionTimings":
        return cls(
            launch_delay=config.launch_delay_ms / 1000,
            hide_delay=config.hide_delay_ms / 1000,
            stop_delay=config.stop_delay_ms / 1000,
            state_request_delay=config.state_request_delay_ms / 1000
        )


@dataclass(frozen=True)
class _Transition:
    name: str
    activity: Activity
    target: ApplicationState
    allowed_from: FrozenSet[ApplicationState]
    delay_field: str


LAUNCH = _Transition(
    "launch", Activity.STARTING, ApplicationState.RUNNING,
    frozenset({ApplicationState.STOPPED}), "launch_delay"
)
HIDE = _Transition(
    "hide", Activity.HIDING, ApplicationState.HIDDEN,
    frozenset({ApplicationState.RUNNING}), "hide_delay"
)
STOP = _Transition(
    "stop", Activity.STOPPING, ApplicationState.STOPPED,
    frozenset({ApplicationState.RUNNING, ApplicationState.HIDDEN}), "stop_delay"
)


class Application:
    """单个远程应用的生命周期实体"""

    # 入站方法名 -> 处理方法
    OPERATIONS: Dict[str, str] = {
        "onApplicationLaunchRequest": "launch",
        "onApplicationHideRequest": "hide",
        "onApplicationResumeRequest": "resume",
        "onApplicationStopRequest": "stop",
        "onApplicationStateRequest": "state_request",
    }

    def __init__(
        self,
        name: str,
        application_id: str,
        notifier: Notifier,
        notification_method: str,
        timings: Optional[TransitionTimings] = None,
        simulate_latency: bool = True
    ):
        self.name = name
        self.application_id = application_id
        self.state = ApplicationState.STOPPED
        self.activity: Optional[Activity] = None
        self.notification_sequence = 0
        self.simulate_latency = simulate_latency
        self.timings = timings or TransitionTimings()

        self._notifier = notifier
        self._notification_method = notification_method
        self._actions = ActionQueue(name)
        self._state_changed = asyncio.Condition()
        self._background_tasks = set()

    def __repr__(self) -> str:
        return (
            f"Application(name={self.name!r}, state={self.state.value}, "
            f"activity={self.activity.value if self.activity else None}, "
            f"seq={self.notification_sequence})"
        )

    async def handle(self, operation: str, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        """按入站方法名分派命令"""
        handler_name = self.OPERATIONS.get(operation)
        if handler_name is None:
            raise UnknownOperationError(operation)
        return await getattr(self, handler_name)(params)

    # ==================== 生命周期命令 ====================

    async def launch(self, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        # 启动进行中且其后无排队动作: 重复的启动立即以无效果完成
        if self.activity == Activity.STARTING and self._actions.pending == 0:
            logger.info(f"{self.name}: wanted to launch, but already starting")
            return self._resolved(False)
        return await self._submit(LAUNCH)

    async def hide(self, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        return await self._submit(HIDE)

    async def resume(self, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        # 设备端未实现恢复: 接受请求但不改变状态、不发通知
        logger.info(f"> {self.name}: onApplicationResumeRequest (not implemented)")
        return self._resolved(False)

    async def stop(self, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        return await self._submit(STOP)

    async def state_request(self, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        """状态查询: 任何状态下都合法，从不改变状态"""
        if not self.simulate_latency:
            await self._send_state_update()
            return self._resolved(True)

        task = asyncio.create_task(self._delayed_state_update())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def force_state(self, state: ApplicationState, notify: bool = True):
        """
        直接设置状态，绕过转换规则

        清除进行中的活动，使挂起的完成回调作为过期结果被丢弃。
        """
        state = ApplicationState(state)
        if self.activity is not None:
            logger.info(f"⚠️ {self.name}: forcing {state.value} supersedes {self.activity.value}")
        logger.info(f"🔧 {self.name}: force state {self.state.value} → {state.value}")
        self.activity = None
        await self._set_state(state)
        if notify:
            await self._send_state_update()

    # ==================== 状态等待 ====================

    async def wait_for_state(self, state: ApplicationState, timeout: float) -> bool:
        """等待已提交的状态达到目标值，超时返回False"""
        state = ApplicationState(state)

        async def _wait():
            async with self._state_changed:
                await self._state_changed.wait_for(lambda: self.state == state)

        try:
            await asyncio.wait_for(_wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def is_idle(self) -> bool:
        """没有进行中或排队的动作"""
        return self.activity is None and self._actions.is_idle()

    async def join(self):
        """等待所有已排队动作完成"""
        await self._actions.join()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    async def close(self):
        await self._actions.close()
        for task in list(self._background_tasks):
            task.cancel()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "applicationName": self.name,
            "applicationId": self.application_id,
            "state": self.state.value,
            "activity": self.activity.value if self.activity else None,
            "notificationSequence": self.notification_sequence,
            "pendingActions": self._actions.pending,
        }

    # ==================== 内部实现 ====================

    def _resolved(self, result: bool) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.set_result(result)
        return future

    async def _submit(self, transition: _Transition) -> asyncio.Future:
        if not self.simulate_latency:
            return self._resolved(await self._complete_immediately(transition))

        logger.debug(f"{transition.name.upper()}, SELF: {self!r}")
        return self._actions.submit(transition.name, lambda: self._perform(transition))

    def _is_legal(self, transition: _Transition) -> bool:
        if self.state not in transition.allowed_from:
            logger.info(
                f"{self.name}: trying to {transition.name} while state is {self.state.value}; ignoring"
            )
            return False
        return True

    async def _complete_immediately(self, transition: _Transition) -> bool:
        if not self._is_legal(transition):
            return False
        logger.info(f"✅ {self.name}: {transition.name} success")
        await self._set_state(transition.target)
        await self._send_state_update()
        return True

    async def _perform(self, transition: _Transition) -> bool:
        """在队首执行一次定时转换"""
        if not self._is_legal(transition):
            return False

        self.activity = transition.activity
        await asyncio.sleep(getattr(self.timings, transition.delay_field))

        # 活动已被覆盖: 过期的完成结果直接丢弃
        if self.activity != transition.activity:
            logger.info(f"{self.name}: {transition.name} superseded, completion discarded")
            return False

        logger.info(f"✅ {self.name}: {transition.name} success")
        await self._set_state(transition.target)
        await self._send_state_update()
        self.activity = None
        return True

    async def _delayed_state_update(self) -> bool:
        await asyncio.sleep(self.timings.state_request_delay)
        await self._send_state_update()
        return True

    async def _set_state(self, state: ApplicationState):
        async with self._state_changed:
            self.state = state
            self._state_changed.notify_all()

    async def _send_state_update(self):
        """发送状态变更通知，不等待确认也不重试"""
        self.notification_sequence += 1
        message = build_state_changed_notification(
            method=self._notification_method,
            sequence=self.notification_sequence,
            application_name=self.name,
            state=self.state.value,
            application_id=self.application_id
        )
        try:
            await self._notifier(message)
            logger.debug(f"📤 {self.name}: state update #{self.notification_sequence} ({self.state.value})")
        except Exception as e:
            logger.error(f"❌ {self.name}: failed to send state update: {e}")
