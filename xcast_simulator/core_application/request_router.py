"""
Xcast Request Router

将入站JSON-RPC命令分派到对应的应用实体
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Union

from xcast_simulator.core_application.application_registry import ApplicationRegistry
from xcast_simulator.core_application.exceptions import MalformedMessageError, UnknownOperationError
from xcast_simulator.core_application.jsonrpc_models import (
    JsonRpcRequest, parse_application_params, parse_request
)

logger = logging.getLogger(__name__)


class RequestRouter:
    """入站命令路由器"""

    def __init__(self, registry: ApplicationRegistry, command_prefix: str):
        self.registry = registry
        self.command_prefix = command_prefix
        self.routed_count = 0
        self.ignored_count = 0
        self.dropped_count = 0

    async def route_message(self, raw: Union[str, bytes]) -> Optional[asyncio.Future]:
        """处理一条入站文本帧，任何异常都不会向外传播"""
        logger.info(f"recv: {raw}")
        try:
            request = parse_request(raw)
            return await self.route(request)
        except MalformedMessageError as e:
            self.dropped_count += 1
            logger.warning(f"⚠️ Dropping malformed message: {e}")
        except Exception as e:
            self.dropped_count += 1
            logger.error(f"❌ error handling request: {e}")
        return None

    async def route(self, request: Union[JsonRpcRequest, Dict[str, Any]]) -> Optional[asyncio.Future]:
        """
        分派已解码的请求

        不带命令前缀的消息(注册确认等)被忽略。

        Returns:
            Optional[asyncio.Future]: 命令完成时结束的future，忽略或丢弃时为None
        """
        if isinstance(request, dict):
            request = JsonRpcRequest.model_validate(request)

        method = request.method
        if not method or not method.startswith(self.command_prefix):
            self.ignored_count += 1
            logger.debug(f"Ignoring message without command prefix: id={request.id} method={method}")
            return None

        operation = method[len(self.command_prefix):]
        params = parse_application_params(request.params)

        application = self.registry.get_or_create(params.application_name, params.application_id)
        try:
            future = await application.handle(operation, request.params)
        except UnknownOperationError as e:
            self.dropped_count += 1
            logger.error(f"❌ Cannot dispatch {method} for {params.application_name}: {e}")
            return None

        self.routed_count += 1
        return future

    def get_stats(self) -> Dict[str, int]:
        return {
            "routed": self.routed_count,
            "ignored": self.ignored_count,
            "dropped": self.dropped_count,
        }
