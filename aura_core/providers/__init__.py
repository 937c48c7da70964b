"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 适配器协议 (base)。
- 维护 Provider 与回退链配置 (registry)。
- 提供各厂商的具体实现 (gemini_client、groq_client、openai_client)。
"""

from typing import Dict

from aura_core.providers.base import ProviderAdapter
from aura_core.providers.gemini_client import GeminiAdapter
from aura_core.providers.groq_client import GroqAdapter
from aura_core.providers.openai_client import OpenAIAdapter


def default_adapters() -> Dict[str, ProviderAdapter]:
    """返回 provider 名 -> 适配器实例 的映射。"""

    return {
        GeminiAdapter.name: GeminiAdapter(),
        GroqAdapter.name: GroqAdapter(),
        OpenAIAdapter.name: OpenAIAdapter(),
    }
