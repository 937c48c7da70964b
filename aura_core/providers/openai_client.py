"""OpenAI 兼容 Provider 适配器。

接口风格为 chat/completions：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

Turn 的 model 角色映射回 assistant，系统提示词作为首条 system 消息。
Groq 使用同一格式，见 groq_client。
"""

from typing import Any, Dict, List, Optional, Sequence

from aura_core.domain.models import ProviderCandidate, Turn
from aura_core.providers.base import ProviderHttpRequest


class OpenAIAdapter:
    """OpenAI chat/completions 适配器。"""

    name = "openai"

    def build_request(
        self,
        turns: Sequence[Turn],
        candidate: ProviderCandidate,
        api_key: str,
        system_prompt: str = "",
    ) -> ProviderHttpRequest:
        msgs: List[Dict[str, str]] = []
        if system_prompt:
            msgs.append({"role": "system", "content": system_prompt})
        msgs.extend(self._turn_to_payload(t) for t in turns)
        payload: Dict[str, Any] = {
            "model": candidate.model_id,
            "messages": msgs,
        }
        if candidate.force_json:
            payload["response_format"] = {"type": "json_object"}
        return ProviderHttpRequest(
            url=candidate.endpoint,
            json=payload,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    def extract_text(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        choice = choices[0]
        msg = choice.get("message") or {}
        raw = msg.get("content") if isinstance(msg, dict) else None

        # 1) 常规：content 为字符串
        if isinstance(raw, str):
            return raw or None

        # 2) content 为分段列表 [{"text": ...}]
        if isinstance(raw, list):
            parts = [p["text"] for p in raw if isinstance(p, dict) and isinstance(p.get("text"), str)]
            return "\n".join(parts) or None

        # 3) 旧版 completions 直接把 text 放在 choice 上
        text = choice.get("text")
        return text if isinstance(text, str) and text else None

    @staticmethod
    def _turn_to_payload(turn: Turn) -> Dict[str, str]:
        role = "assistant" if turn.role == "model" else "user"
        return {"role": role, "content": turn.text}
