"""对外 API 服务模块。

提供与 Web 框架无关的函数接口，返回 ``(http_status, body)``，
由上层传输层（Express/FastAPI 等）直接写回客户端：

- submit_chat: 成功 200 ``{text, intent}``；失败 ``{error}``。
- get_history: 最近的对话历史（时间正序）。
- health: 服务状态与各 Provider 凭证是否已配置。
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from aura_core.api.schemas import ChatPayload
from aura_core.config.settings import settings
from aura_core.domain.conversation import HistoryStore
from aura_core.domain.exceptions import BusinessError, ValidationError
from aura_core.domain.models import ChatRequest
from aura_core.gateway.engine import ChatGateway
from aura_core.gateway.router import FallbackRouter
from aura_core.infrastructure.logging.logger import logger
from aura_core.infrastructure.storage.history_store import JsonHistoryStore
from aura_core.prompts import load_system_prompt
from aura_core.providers.registry import PROVIDER_NAMES, GatewayConfig, get_provider_config

__version__ = "2.0.0"

_store: Optional[HistoryStore] = None
_gateway: Optional[ChatGateway] = None


def get_default_gateway() -> ChatGateway:
    """获取默认的 ChatGateway 实例（单例，配置只在首次调用时加载）。"""
    global _store, _gateway
    if _store is None and settings.history_enabled:
        _store = JsonHistoryStore(root=settings.storage_root)
    if _gateway is None:
        config = GatewayConfig.from_settings(
            settings,
            system_prompt=load_system_prompt(settings.system_prompt_locale),
        )
        _gateway = ChatGateway(FallbackRouter(config), store=_store)
    return _gateway


def parse_chat_payload(payload: Any, default_provider: str) -> ChatRequest:
    """校验入站 JSON 并转换为 ChatRequest。

    Raises:
        ValidationError: messages 缺失/为空/格式错误，或 provider 未知。
    """
    if not isinstance(payload, dict):
        raise ValidationError(code="INVALID_PAYLOAD", message="Request body must be a JSON object.")
    if not payload.get("messages"):
        raise ValidationError(code="EMPTY_MESSAGES", message="Messages are required.")
    try:
        parsed = ChatPayload.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(
            code="INVALID_MESSAGES",
            message=f"Invalid request: {loc} {first.get('msg', '')}".strip(),
        )
    request = parsed.to_request(default_provider)
    try:
        get_provider_config(request.provider)
    except KeyError:
        raise ValidationError(
            code="UNKNOWN_PROVIDER",
            message=f"Unknown provider {request.provider!r}; expected one of {', '.join(PROVIDER_NAMES)}.",
        )
    return request


async def submit_chat(
    payload: Any,
    gateway: Optional[ChatGateway] = None,
) -> Tuple[int, Dict[str, Any]]:
    """处理一次聊天请求，返回 (状态码, 响应体)。"""
    gateway = gateway or get_default_gateway()
    try:
        request = parse_chat_payload(payload, gateway.config.default_provider)
        reply = await gateway.chat(request)
    except BusinessError as e:
        logger.error(f"Chat failed: {e.message}", extra={"extra": {
            "code": e.code,
            "http_status": e.http_status,
        }})
        return e.http_status, {"error": e.message}
    except Exception as e:
        logger.exception("Chat failed with unexpected error", extra={"extra": {"error": str(e)}})
        return 500, {"error": str(e) or "Internal Server Error"}
    return 200, reply.to_dict()


def get_history(
    limit: Optional[int] = None,
    store: Optional[HistoryStore] = None,
) -> Tuple[int, Union[List[Dict[str, Any]], Dict[str, Any]]]:
    """获取最近的对话历史。

    Returns:
        (200, 记录列表)；未启用持久化时返回空列表；读取失败返回 (500, {error})。
    """
    if store is None:
        store = get_default_gateway().store
    if store is None:
        return 200, []
    try:
        records = store.query(limit or settings.history_limit)
    except BusinessError as e:
        logger.error(f"History query failed: {e.message}", extra={"extra": {"code": e.code}})
        return 500, {"error": "Failed to fetch history"}
    return 200, [
        {
            "id": r.id,
            "role": r.role,
            "content": r.content,
            "timestamp": r.created_at.isoformat(),
        }
        for r in records
    ]


def health(gateway: Optional[ChatGateway] = None) -> Dict[str, Any]:
    """服务健康检查：不发起任何网络请求。"""
    gateway = gateway or get_default_gateway()
    config = gateway.config
    return {
        "status": "online",
        "version": __version__,
        "storage": gateway.store is not None,
        "providers": {name: bool(config.credential_for(name)) for name in PROVIDER_NAMES},
    }
