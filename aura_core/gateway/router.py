"""按回退链分发请求。

对某个 Provider，按注册表中的顺序逐个尝试候选模型/端点：

1. 查找凭证；缺失时直接抛出 ConfigurationError，不发起任何网络请求。
2. 对每个候选：由适配器构造请求，发送，并对结果分类：
   - 网络错误、超时、非 2xx -> ProviderTransportError，切换到下一个候选；
   - 2xx 但解析不出文本 -> MalformedResponseError，同样切换；
   - 取到非空文本 -> 立即返回。
3. 全部失败 -> ProviderExhaustedError。

候选之间严格串行，不并发竞速，避免对付费 API 的重复调用。
调用方取消任务时，正在进行的请求随之取消。
"""

import asyncio
import json
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from aura_core.domain.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    ProviderExhaustedError,
    ProviderTransportError,
)
from aura_core.domain.models import ProviderCandidate, Turn
from aura_core.infrastructure.logging.logger import logger
from aura_core.providers import default_adapters
from aura_core.providers.base import ProviderAdapter
from aura_core.providers.registry import GatewayConfig


class FallbackRouter:
    def __init__(
        self,
        config: GatewayConfig,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._adapters = dict(adapters or default_adapters())
        # 测试中注入 httpx.MockTransport
        self._transport = transport

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def ensure_ready(self, provider: str) -> Tuple[str, ProviderAdapter, Tuple[ProviderCandidate, ...]]:
        """校验凭证、适配器与候选列表，返回 (api_key, adapter, candidates)。"""

        name = provider.lower()
        candidates = self._config.candidates_for(name)
        adapter = self._adapters.get(name)
        if not candidates or adapter is None:
            raise ConfigurationError(
                code="UNKNOWN_PROVIDER",
                message=f"No candidates configured for provider {provider!r}",
                provider=name,
            )
        api_key = self._config.credential_for(name)
        if not api_key:
            raise ConfigurationError(
                code="MISSING_API_KEY",
                message=f"API Key for {name} is not configured on the server.",
                provider=name,
            )
        return api_key, adapter, candidates

    async def dispatch(self, turns: Sequence[Turn], provider: str) -> str:
        api_key, adapter, candidates = self.ensure_ready(provider)
        attempts: List[Dict[str, Any]] = []
        log_ctx: Dict[str, Any] = {"provider": adapter.name, "candidates": len(candidates)}

        async with httpx.AsyncClient(
            timeout=self._config.http_timeout,
            trust_env=False,
            transport=self._transport,
        ) as client:
            for idx, candidate in enumerate(candidates):
                start = time.monotonic()
                try:
                    text = await asyncio.wait_for(
                        self._attempt(client, adapter, candidate, turns, api_key),
                        timeout=self._config.http_timeout,
                    )
                except asyncio.TimeoutError:
                    err: ProviderTransportError = ProviderTransportError(
                        code="TIMEOUT",
                        message=f"{candidate.model_id} timed out after {self._config.http_timeout}s",
                    )
                except ProviderTransportError as e:
                    err = e
                else:
                    logger.info(
                        "router.candidate_ok",
                        extra={"extra": {
                            **log_ctx,
                            "model": candidate.model_id,
                            "attempt": idx + 1,
                            "latency_ms": int((time.monotonic() - start) * 1000),
                        }},
                    )
                    return text

                attempts.append({
                    "model": candidate.model_id,
                    "code": err.code,
                    "message": err.message[:200],
                    "http_status": err.extra.get("upstream_status"),
                })
                logger.warning(
                    "router.candidate_failed",
                    extra={"extra": {
                        **log_ctx,
                        "model": candidate.model_id,
                        "attempt": idx + 1,
                        "code": err.code,
                        "error": err.message[:200],
                        "latency_ms": int((time.monotonic() - start) * 1000),
                    }},
                )

        logger.error("router.exhausted", extra={"extra": {**log_ctx, "attempts": attempts}})
        raise ProviderExhaustedError(
            code="PROVIDER_EXHAUSTED",
            message=f"All {len(candidates)} candidate(s) for {adapter.name} failed.",
            provider=adapter.name,
            attempts=attempts,
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        adapter: ProviderAdapter,
        candidate: ProviderCandidate,
        turns: Sequence[Turn],
        api_key: str,
    ) -> str:
        req = adapter.build_request(turns, candidate, api_key, self._config.system_prompt)
        try:
            resp = await client.post(req.url, json=req.json, headers=req.headers, params=req.params or None)
        except httpx.TimeoutException as e:
            raise ProviderTransportError(code="TIMEOUT", message=str(e) or "request timed out")
        except httpx.HTTPError as e:
            # 错误信息里可能带有 ?key= 查询参数
            msg = (str(e) or type(e).__name__).replace(api_key, "***")
            raise ProviderTransportError(code="NETWORK_ERROR", message=msg)

        if resp.status_code == 429:
            raise ProviderTransportError(
                code="RATE_LIMIT",
                message=f"{candidate.model_id} rate limited",
                upstream_status=resp.status_code,
            )
        if resp.status_code < 200 or resp.status_code >= 300:
            raise ProviderTransportError(
                code="API_ERROR",
                message=self._error_message(resp),
                upstream_status=resp.status_code,
            )

        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise MalformedResponseError(code="BAD_JSON", message=f"{candidate.model_id} returned non-JSON body")

        try:
            text = adapter.extract_text(data)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise MalformedResponseError(
                code="NO_TEXT",
                message=f"{candidate.model_id} response has unexpected shape: {type(e).__name__}",
            )
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponseError(code="NO_TEXT", message=f"{candidate.model_id} response has no text")
        return text

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """尽量从各家错误信封中取出可读信息。"""

        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return f"HTTP {resp.status_code}: {resp.text[:200]}"
        err = data.get("error") if isinstance(data, dict) else None
        if isinstance(err, dict) and err.get("message"):
            return f"HTTP {resp.status_code}: {err['message']}"
        if isinstance(err, str):
            return f"HTTP {resp.status_code}: {err}"
        return f"HTTP {resp.status_code}"
