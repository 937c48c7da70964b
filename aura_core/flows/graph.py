"""LangGraph construction and node implementations for one chat request.

RECEIVED -> NORMALIZED -> DISPATCHED -> PARSED -> SANITIZED -> RETURNED, with FAILED
reachable from RECEIVED (configuration) and DISPATCHED (exhausted chain).
"""

from __future__ import annotations

from typing import Callable

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from aura_core.domain.exceptions import BusinessError
from aura_core.domain.models import ChatReply
from aura_core.flows.state import ChatState
from aura_core.gateway.conversation import normalize_turns
from aura_core.gateway.response_parser import normalize
from aura_core.gateway.router import FallbackRouter
from aura_core.gateway.sanitizer import OutputSanitizer
from aura_core.infrastructure.logging.logger import logger


def _log_ctx(state: ChatState) -> dict:
    req = state["request"]
    return {"trace_id": state.get("trace_id"), "provider": req.provider}


def received_node(state: ChatState, router: FallbackRouter) -> ChatState:
    try:
        router.ensure_ready(state["request"].provider)
    except BusinessError as exc:
        return {"error": exc, "status": "FAILED"}
    return {"status": "RECEIVED"}


def normalize_node(state: ChatState) -> ChatState:
    turns = normalize_turns(state["request"].messages)
    logger.info("normalize_node.end", extra={"extra": {**_log_ctx(state), "turns": len(turns)}})
    return {"turns": turns, "status": "NORMALIZED"}


async def dispatch_node(state: ChatState, router: FallbackRouter) -> ChatState:
    try:
        raw = await router.dispatch(state["turns"], state["request"].provider)
    except BusinessError as exc:
        return {"error": exc, "status": "FAILED"}
    return {"raw": raw, "status": "DISPATCHED"}


def parse_node(state: ChatState) -> ChatState:
    return {"reply": normalize(state.get("raw")), "status": "PARSED"}


def sanitize_node(state: ChatState, sanitizer: OutputSanitizer) -> ChatState:
    reply = state["reply"]
    cleaned = ChatReply(text=sanitizer.sanitize(reply.text), intent=reply.intent)
    return {"reply": cleaned, "status": "SANITIZED"}


def returned_node(state: ChatState) -> ChatState:
    return {"status": "RETURNED"}


def failed_node(state: ChatState) -> ChatState:
    err = state.get("error")
    logger.error(
        "failed_node",
        extra={"extra": {
            **_log_ctx(state),
            "code": getattr(err, "code", None),
            "error": getattr(err, "message", str(err)),
        }},
    )
    return {"status": "FAILED"}


def _next_or_failed(next_node: str) -> Callable[[ChatState], str]:
    def route(state: ChatState) -> str:
        return "failed" if state.get("error") else next_node

    return route


def build_graph(router: FallbackRouter, sanitizer: OutputSanitizer) -> CompiledStateGraph:
    async def dispatch(state: ChatState) -> ChatState:
        return await dispatch_node(state, router)

    graph = StateGraph(ChatState)
    graph.add_node("received", lambda s: received_node(s, router))
    graph.add_node("normalize", normalize_node)
    graph.add_node("dispatch", dispatch)
    graph.add_node("parse", parse_node)
    graph.add_node("sanitize", lambda s: sanitize_node(s, sanitizer))
    graph.add_node("returned", returned_node)
    graph.add_node("failed", failed_node)
    graph.set_entry_point("received")
    graph.add_conditional_edges(
        "received", _next_or_failed("normalize"), {"normalize": "normalize", "failed": "failed"}
    )
    graph.add_edge("normalize", "dispatch")
    graph.add_conditional_edges(
        "dispatch", _next_or_failed("parse"), {"parse": "parse", "failed": "failed"}
    )
    graph.add_edge("parse", "sanitize")
    graph.add_edge("sanitize", "returned")
    graph.add_edge("returned", END)
    graph.add_edge("failed", END)
    return graph.compile()
