"""
Xcast 模拟设备会话
Xcast Device Simulator Session

负责组装并运行一次模拟会话：
1. 连接设备上的Xcast插件并订阅生命周期事件
2. 将入站命令路由到会话持有的应用注册表
3. 可选的操作员控制台与检查API
4. 收到SIGINT/SIGTERM时注销事件并退出
"""
import asyncio
import contextlib
import logging
import signal
from typing import Optional

import uvicorn

from config.settings import Settings
from xcast_simulator.config.xcast_config import XcastConfig
from xcast_simulator.core_application.application import TransitionTimings
from xcast_simulator.core_application.application_registry import ApplicationRegistry
from xcast_simulator.core_application.request_router import RequestRouter
from xcast_simulator.external_services.event_registration import XcastEventRegistrar
from xcast_simulator.external_services.xcast_connection import XcastConnection
from xcast_simulator.user_interaction.inspection_api import create_inspection_app
from xcast_simulator.user_interaction.operator_console import OperatorConsole

logger = logging.getLogger(__name__)


class EmbeddedServer(uvicorn.Server):
    """在会话事件循环中运行的uvicorn服务器，信号由会话统一处理"""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self):
        pass


class XcastDeviceSimulator:
    """模拟设备会话"""

    def __init__(self, settings: Settings, xcast_config: XcastConfig):
        self.settings = settings
        self.xcast_config = xcast_config

        self.connection = XcastConnection(
            url=xcast_config.get_service_url(settings.cpe_host),
            subprotocol=xcast_config.ws_subprotocol,
            max_retries=xcast_config.ws_max_retries,
            initial_retry_delay=xcast_config.ws_initial_retry_delay,
            max_retry_delay=xcast_config.ws_max_retry_delay,
            ping_interval=xcast_config.ws_ping_interval,
            ping_timeout=xcast_config.ws_ping_timeout,
            connection_timeout=xcast_config.ws_connection_timeout
        )
        self.registry = ApplicationRegistry(
            notifier=self.connection.send_message,
            notification_method=xcast_config.get_state_changed_method(),
            timings=TransitionTimings.from_config(xcast_config),
            simulate_latency=settings.simulate_latency,
            identity_includes_application_id=xcast_config.identity_includes_application_id
        )
        self.router = RequestRouter(self.registry, xcast_config.get_command_prefix())
        self.registrar = XcastEventRegistrar(
            send=self.connection.send_message,
            namespace=xcast_config.namespace,
            subscriber_id=xcast_config.subscriber_id,
            events=xcast_config.events
        )

        self.connection.on_connected = self.registrar.register_all
        self.connection.on_message = self.router.route_message

        self.console: Optional[OperatorConsole] = (
            OperatorConsole(self.registry) if settings.console_enabled else None
        )
        self.api_server: Optional[EmbeddedServer] = None
        if settings.api_enabled:
            api_app = create_inspection_app(self.registry, self.connection, self.router)
            self.api_server = EmbeddedServer(uvicorn.Config(
                api_app,
                host=settings.host,
                port=settings.port,
                log_level=settings.log_level.lower()
            ))

        self._stop_event = asyncio.Event()
        self._console_task: Optional[asyncio.Task] = None
        self._api_task: Optional[asyncio.Task] = None
        self._installed_signals = []

        mode = "simulated latency" if settings.simulate_latency else "immediate"
        logger.info(f"🚀 {settings.app_name} v{settings.app_version} ({mode} mode)")

    def request_stop(self):
        """请求结束会话"""
        if not self._stop_event.is_set():
            logger.info("SIGINT handler!")
            self._stop_event.set()

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
                self._installed_signals.append(sig)
            except NotImplementedError:
                logger.warning(f"⚠️ 当前平台不支持信号处理: {sig.name}")

    def _remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    async def run(self):
        """运行会话直到收到停止信号"""
        self._install_signal_handlers()

        connected = await self.connection.connect(wait_timeout=self.xcast_config.ws_connection_timeout * 3)
        if not connected:
            logger.warning("⚠️ 首次连接未成功，后台继续重连")

        if self.console:
            self._console_task = asyncio.create_task(self.console.run())
        if self.api_server:
            logger.info(f"🌐 Inspection API: {self.settings.get_api_url()}")
            self._api_task = asyncio.create_task(self.api_server.serve())

        await self._stop_event.wait()
        await self.shutdown()

    async def shutdown(self):
        """注销事件、清空发送队列并断开连接"""
        if self.connection.is_connected():
            await self.registrar.unregister_all()
            await self.connection.drain(self.xcast_config.shutdown_drain_timeout)

        await self.connection.disconnect()
        await self.registry.close()

        if self._console_task:
            self._console_task.cancel()
        if self._api_task:
            self.api_server.should_exit = True
        tasks = [task for task in (self._console_task, self._api_task) if task]
        await asyncio.gather(*tasks, return_exceptions=True)
        self._remove_signal_handlers()
        logger.info("✅ 会话已结束")
