"""入站请求的 Pydantic 模型。"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from aura_core.domain.models import ChatRequest, Message


class MessagePayload(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatPayload(BaseModel):
    messages: List[MessagePayload] = Field(min_length=1)
    provider: Optional[str] = None

    def to_request(self, default_provider: str) -> ChatRequest:
        provider = (self.provider or default_provider).strip().lower()
        return ChatRequest.build(
            [Message(role=m.role, content=m.content) for m in self.messages],
            provider,
        )
