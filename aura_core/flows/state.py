"""State definition for the per-request chat graph."""

from __future__ import annotations

from typing import List, Literal, Optional, TypedDict

from aura_core.domain.exceptions import BusinessError
from aura_core.domain.models import ChatReply, ChatRequest, Turn

ChatStatus = Literal[
    "RECEIVED",
    "NORMALIZED",
    "DISPATCHED",
    "PARSED",
    "SANITIZED",
    "RETURNED",
    "FAILED",
]


class ChatState(TypedDict, total=False):
    """State shared across LangGraph nodes."""

    trace_id: str
    request: ChatRequest
    turns: List[Turn]
    raw: Optional[str]
    reply: Optional[ChatReply]
    error: Optional[BusinessError]
    status: ChatStatus
