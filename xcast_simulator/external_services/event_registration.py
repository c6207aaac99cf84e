"""
Xcast event registration
连接建立后订阅生命周期请求事件，退出前注销
"""
import logging
from typing import Awaitable, Callable, List

from xcast_simulator.core_application.jsonrpc_models import build_event_subscription_request

logger = logging.getLogger(__name__)


class XcastEventRegistrar:
    """事件订阅管理"""

    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        namespace: str,
        subscriber_id: str,
        events: List[str]
    ):
        self._send = send
        self.namespace = namespace
        self.subscriber_id = subscriber_id
        self.events = list(events)
        self.registered = False

    async def register_all(self):
        await self._send_all("register")
        self.registered = True

    async def unregister_all(self):
        if not self.registered:
            logger.info("Not registered; skipping unregister")
            return
        logger.info("unregistering ...")
        await self._send_all("unregister")
        self.registered = False

    async def _send_all(self, action: str):
        for event in self.events:
            message = build_event_subscription_request(
                namespace=self.namespace,
                action=action,
                event=event,
                subscriber_id=self.subscriber_id
            )
            await self._send(message)
            logger.info(f"{action}ed for {event}")
