"""网关引擎核心模块。

ChatGateway 把一次请求交给 LangGraph 状态机执行
（规范化会话 -> 回退链分发 -> 解析 -> 清洗），并在主流程之外
尽力而为地保存用户消息与助手回复。

引擎本身不持有任何按请求变化的状态，可被并发请求共享。
"""

import asyncio
import time
from typing import Any, Dict, Optional, Set
from uuid import uuid4

from aura_core.domain.conversation import HistoryStore
from aura_core.domain.models import ChatReply, ChatRequest, Role
from aura_core.flows.graph import build_graph
from aura_core.flows.state import ChatState
from aura_core.gateway.router import FallbackRouter
from aura_core.gateway.sanitizer import OutputSanitizer
from aura_core.infrastructure.logging.logger import logger
from aura_core.providers.registry import GatewayConfig


class ChatGateway:
    def __init__(
        self,
        router: FallbackRouter,
        store: Optional[HistoryStore] = None,
        sanitizer: Optional[OutputSanitizer] = None,
    ):
        self._router = router
        self._store = store
        self._sanitizer = sanitizer or OutputSanitizer(uppercase=router.config.uppercase)
        self._graph = build_graph(self._router, self._sanitizer)
        self._pending: Set[asyncio.Task] = set()

    @property
    def config(self) -> GatewayConfig:
        return self._router.config

    @property
    def store(self) -> Optional[HistoryStore]:
        return self._store

    async def chat(self, request: ChatRequest) -> ChatReply:
        """执行一次聊天请求。

        Returns:
            清洗后的 ChatReply。

        Raises:
            ConfigurationError: 所选 Provider 未配置凭证（不会发起网络请求）。
            ProviderExhaustedError: 回退链上所有候选都失败。
        """
        start_time = time.time()
        trace_id = f"tr-{uuid4().hex}"
        log_ctx: Dict[str, Any] = {
            "trace_id": trace_id,
            "provider": request.provider,
            "messages": len(request.messages),
        }
        logger.info("gateway.chat.start", extra={"extra": log_ctx})

        self._persist("user", request.messages[-1].content, trace_id)

        state: ChatState = {"trace_id": trace_id, "request": request, "status": "RECEIVED"}
        result = await self._graph.ainvoke(state)

        error = result.get("error")
        if error is not None:
            logger.warning(
                "gateway.chat.failed",
                extra={"extra": {
                    **log_ctx,
                    "code": error.code,
                    "duration_ms": int((time.time() - start_time) * 1000),
                }},
            )
            raise error

        reply: ChatReply = result["reply"]
        self._persist("assistant", reply.text, trace_id)
        logger.info(
            "gateway.chat.end",
            extra={"extra": {
                **log_ctx,
                "status": result["status"],
                "intent": reply.intent.type if reply.intent else None,
                "duration_ms": int((time.time() - start_time) * 1000),
            }},
        )
        return reply

    async def wait_for_persistence(self) -> None:
        """等待所有尚未完成的历史写入（主要供测试与优雅退出使用）。"""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---- 辅助方法 ----

    def _persist(self, role: Role, content: str, trace_id: str) -> None:
        """在后台线程写入历史；失败只记日志，不影响回复。"""

        if self._store is None:
            return
        task = asyncio.create_task(asyncio.to_thread(self._store.insert, role, content))
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.warning(
                    "gateway.persist_failed",
                    extra={"extra": {"trace_id": trace_id, "role": role, "error": str(exc)}},
                )

        task.add_done_callback(_done)
