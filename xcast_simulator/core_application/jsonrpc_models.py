"""
JSON-RPC 2.0 消息模型
JSON-RPC Envelope Models

Xcast插件通过JSON-RPC 2.0格式的WebSocket文本帧通信：
1. 入站命令: <subscriberId>.<operation> 携带 applicationName / applicationId
2. 出站通知: <namespace>.onApplicationStateChanged
3. 事件订阅: <namespace>.register / <namespace>.unregister
"""
import json
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from xcast_simulator.core_application.exceptions import MalformedMessageError


class JsonRpcRequest(BaseModel):
    """JSON-RPC请求模型"""
    jsonrpc: str = "2.0"
    id: Optional[Union[str, int]] = None
    method: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class ApplicationRequestParams(BaseModel):
    """生命周期命令参数"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    application_name: str = Field(alias="applicationName")
    # 控制端填充不一致: 有时为空字符串, 有时为 "0", 有时缺失
    application_id: str = Field(default="", alias="applicationId")

    @field_validator("application_id", mode="before")
    @classmethod
    def _coerce_application_id(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class StateChangedParams(BaseModel):
    """状态变更通知参数"""
    model_config = ConfigDict(populate_by_name=True)

    application_name: str = Field(alias="applicationName")
    state: str
    application_id: str = Field(alias="applicationId")


class StateChangedNotification(BaseModel):
    """状态变更通知模型"""
    jsonrpc: str = "2.0"
    id: int
    method: str
    params: StateChangedParams


class EventSubscriptionParams(BaseModel):
    """事件订阅参数"""
    event: str
    id: str


class EventSubscriptionRequest(BaseModel):
    """事件订阅/注销请求模型"""
    jsonrpc: str = "2.0"
    id: int = 0
    method: str
    params: EventSubscriptionParams


def parse_request(raw: Union[str, bytes]) -> JsonRpcRequest:
    """解析入站文本帧，失败时抛出 MalformedMessageError"""
    try:
        return JsonRpcRequest.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid JSON-RPC message: {e}") from e


def parse_application_params(params: Optional[Dict[str, Any]]) -> ApplicationRequestParams:
    """提取 applicationName / applicationId"""
    if params is None:
        raise MalformedMessageError("Missing params")
    try:
        return ApplicationRequestParams.model_validate(params)
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid application params: {e}") from e


def build_state_changed_notification(
    method: str,
    sequence: int,
    application_name: str,
    state: str,
    application_id: str
) -> str:
    """构建状态变更通知文本帧"""
    notification = StateChangedNotification(
        id=sequence,
        method=method,
        params=StateChangedParams(
            application_name=application_name,
            state=state,
            application_id=application_id
        )
    )
    return json.dumps(notification.model_dump(by_alias=True))


def build_event_subscription_request(
    namespace: str,
    action: str,
    event: str,
    subscriber_id: str
) -> str:
    """构建 register / unregister 请求文本帧"""
    request = EventSubscriptionRequest(
        method=f"{namespace}.{action}",
        params=EventSubscriptionParams(event=event, id=subscriber_id)
    )
    return json.dumps(request.model_dump())
