"""把 Provider 返回的原始文本规范化为 ChatReply。

模型对 JSON 输出的遵守程度参差不齐：有时返回纯 JSON，有时把 JSON 夹在
说明文字里，有时带 Markdown 代码围栏，有时干脆是纯文本。``normalize``
按固定顺序依次尝试以下规则，取第一个得到非空文本的结果：

1. 去掉代码围栏标记（```json / ```）。
2. 整段文本可解析为 JSON 对象：按 text、response、message 的优先级取字段，
   并带出 intent / type / topic 等附加字段。
3. 否则找到第一个括号配平的 ``{...}`` 子串：能解析则同样取字段；
   没有可识别字段时依次退回到子串前的文字、子串后的文字、对象本身的 JSON 序列化。
4. 子串不存在配平或解析失败：退回到第一个 ``{`` 之前的文字。
5. 文本中没有 ``{``：去掉残余的围栏/括号字符后原样返回。

所有规则都得到空文本时返回固定占位句，ChatReply.text 永不为空。
该函数不抛异常，也没有副作用（除日志外）。
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from aura_core.domain.models import DEFAULT_INTENT_TYPE, ChatReply, Intent
from aura_core.infrastructure.logging.logger import logger

RECOGNIZED_FIELDS = ("text", "response", "message")
PARSE_FALLBACK_TEXT = "I AM SORRY, I ENCOUNTERED A PARSING ERROR."

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_STRAY_RE = re.compile(r"[{}`]")


def strip_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw)


def find_balanced_object(text: str) -> Optional[Tuple[int, int]]:
    """返回第一个括号配平的 ``{...}`` 子串的 (start, end)，忽略字符串字面量内的括号。"""

    # 单次线性扫描：栈中保存尚未闭合的 { 位置，取起点最靠前的已闭合区间
    opened: List[int] = []
    best: Optional[Tuple[int, int]] = None
    in_str = False
    escape = False
    for i, ch in enumerate(text):
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == "{":
            opened.append(i)
        elif not opened:
            continue
        elif ch == '"':
            in_str = True
        elif ch == "}":
            start = opened.pop()
            if best is None or start < best[0]:
                best = (start, i + 1)
            if not opened:
                # 之前的 { 都已闭合，后面的区间起点只会更靠后
                return best
    return best


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _field_text(obj: Dict[str, Any]) -> str:
    for key in RECOGNIZED_FIELDS:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    return ""


def _as_value(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _intent(obj: Dict[str, Any]) -> Intent:
    raw = obj.get("intent")
    if isinstance(raw, dict):
        kind = raw.get("type")
        if isinstance(kind, str) and kind.strip():
            return Intent(type=kind.strip(), value=_as_value(raw.get("value")))
    elif isinstance(raw, str) and raw.strip():
        return Intent(type=raw.strip(), value=_as_value(obj.get("value")))

    kind = obj.get("type")
    if isinstance(kind, str) and kind.strip():
        value = obj.get("value", obj.get("topic"))
        return Intent(type=kind.strip(), value=_as_value(value))

    topic = obj.get("topic")
    if isinstance(topic, str) and topic.strip():
        return Intent(type=DEFAULT_INTENT_TYPE, value=topic.strip())
    return Intent()


def _stringify(obj: Dict[str, Any]) -> str:
    if not obj:
        return ""
    return json.dumps(obj, ensure_ascii=False)


def _cascade(raw: str) -> Tuple[str, Intent, str]:
    """返回 (text, intent, rule)。"""

    cleaned = strip_fences(raw).strip()
    if not cleaned:
        return "", Intent(), "empty"

    whole = _load_object(cleaned)
    if whole is not None:
        text = _field_text(whole)
        if text:
            return text, _intent(whole), "whole_json"

    if "{" not in cleaned:
        return _STRAY_RE.sub("", cleaned).strip(), Intent(), "plain_text"

    span = find_balanced_object(cleaned)
    if span is not None:
        start, end = span
        obj = _load_object(cleaned[start:end])
        if obj is not None:
            text = (
                _field_text(obj)
                or cleaned[:start].strip()
                or cleaned[end:].strip()
                or _stringify(obj)
            )
            if text:
                return text, _intent(obj), "embedded_json"

    return cleaned.split("{", 1)[0].strip(), Intent(), "prose_before_brace"


def normalize(raw: Optional[str]) -> ChatReply:
    text, intent, rule = _cascade(raw or "")
    if not text:
        logger.info("response_parser.placeholder", extra={"extra": {"raw_len": len(raw or "")}})
        return ChatReply(text=PARSE_FALLBACK_TEXT, intent=Intent())
    if rule not in ("whole_json", "embedded_json"):
        logger.info("response_parser.degraded", extra={"extra": {"rule": rule, "raw_len": len(raw or "")}})
    return ChatReply(text=text, intent=intent)
