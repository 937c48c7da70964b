"""AURA 网关顶层包。

该包实现语音助手背后的 AI 回复网关，
包括配置加载、领域模型、Provider 适配与回退链、
回复解析与人设清洗、以及尽力而为的历史持久化。
"""

from aura_core.api.service import get_history, health, submit_chat

__all__ = ["submit_chat", "get_history", "health"]
