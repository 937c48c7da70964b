"""统一的对话与回复数据模型。

本模块定义网关内部在不同 Provider 之间共享的标准数据结构：

- Message: 调用方传入的一条对话消息（user/assistant/system）。
- Turn: 经过角色映射与合并后、面向 Provider 的一轮对话（user/model）。
- ProviderCandidate: 某个 Provider 回退链中的一个模型/端点。
- ChatRequest: 一次完整的聊天请求。
- ChatReply: 解析、清洗后交还给调用方的最终回复。

所有 Provider 适配器都只依赖这些模型，并负责在各自的 API JSON
和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

from aura_core.domain.exceptions import ValidationError


# 调用方消息角色
Role = Literal["user", "assistant", "system"]
# Provider 侧的两种轮次角色
TurnRole = Literal["user", "model"]

MESSAGE_ROLES = ("user", "assistant", "system")

DEFAULT_INTENT_TYPE = "conversation"


@dataclass(frozen=True)
class Message:
    """一条对话消息，顺序即会话历史顺序。"""

    role: Role
    content: str


@dataclass
class Turn:
    """面向 Provider 的一轮对话。

    ConversationNormalizer 在构建过程中会向 text 追加内容，
    因此这里不冻结；构建完成后视为只读。
    """

    role: TurnRole
    text: str


@dataclass(frozen=True)
class ProviderCandidate:
    """回退链中的一个候选。

    - endpoint_template: 端点 URL，可包含 ``{model}`` 占位符。
    - model_id: 厂商模型 ID，例如 "gemini-1.5-flash"。
    - force_json: 是否在请求中打开“强制结构化输出”选项。
    """

    endpoint_template: str
    model_id: str
    force_json: bool = False

    @property
    def endpoint(self) -> str:
        return self.endpoint_template.format(model=self.model_id)


@dataclass(frozen=True)
class ChatRequest:
    """一次聊天请求，messages 不可为空。"""

    messages: Tuple[Message, ...]
    provider: str

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValidationError(code="EMPTY_MESSAGES", message="Messages are required.")

    @classmethod
    def build(cls, messages: Sequence[Message], provider: str) -> "ChatRequest":
        return cls(messages=tuple(messages), provider=provider.lower())


@dataclass(frozen=True)
class Intent:
    type: str = DEFAULT_INTENT_TYPE
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type}
        if self.value is not None:
            payload["value"] = self.value
        return payload


@dataclass(frozen=True)
class ChatReply:
    """最终回复。text 永远非空。"""

    text: str
    intent: Optional[Intent] = field(default=None)

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValueError("ChatReply.text must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": self.text}
        if self.intent is not None:
            payload["intent"] = self.intent.to_dict()
        return payload
