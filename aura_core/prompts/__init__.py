"""系统提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 AURA 人设的 system prompt，
由 FallbackRouter 交给各适配器（Gemini 的 systemInstruction、
OpenAI 兼容接口的首条 system 消息）。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(locale: str = "en") -> str:
    """根据语言加载人设系统提示词文本，找不到对应语言时退回英文。"""

    fname = PROMPTS_DIR / locale / "aura_system.md"
    if not fname.exists():
        fname = PROMPTS_DIR / "en" / "aura_system.md"
    return fname.read_text(encoding="utf-8").strip()
