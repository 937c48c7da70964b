"""Gemini Provider 适配器。

使用 generateContent 端点：
- URL: https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent
- 认证: ?key=<api_key> 查询参数
- 请求体: systemInstruction + contents（角色只有 user / model，且必须严格交替）

生成文本位于 candidates[0].content.parts[*].text。
"""

from typing import Any, Dict, List, Optional, Sequence

from aura_core.domain.models import ProviderCandidate, Turn
from aura_core.providers.base import ProviderHttpRequest


class GeminiAdapter:
    """Gemini 适配器实现。"""

    name = "gemini"

    def build_request(
        self,
        turns: Sequence[Turn],
        candidate: ProviderCandidate,
        api_key: str,
        system_prompt: str = "",
    ) -> ProviderHttpRequest:
        payload: Dict[str, Any] = {
            "contents": [{"role": t.role, "parts": [{"text": t.text}]} for t in turns],
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if candidate.force_json:
            payload["generationConfig"] = {"responseMimeType": "application/json"}
        return ProviderHttpRequest(
            url=candidate.endpoint,
            json=payload,
            headers={"Content-Type": "application/json"},
            params={"key": api_key},
        )

    def extract_text(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return None
        content = candidates[0].get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return None
        texts: List[str] = []
        for part in parts:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])
        text = "".join(texts)
        return text or None
