"""Groq Provider 适配器。

Groq 提供 OpenAI 兼容的 chat/completions 端点，请求与响应格式相同，
因此直接复用 OpenAIAdapter，只替换名称。
"""

from aura_core.providers.openai_client import OpenAIAdapter


class GroqAdapter(OpenAIAdapter):
    """Groq 适配器实现。"""

    name = "groq"
