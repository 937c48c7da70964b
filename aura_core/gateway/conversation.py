"""会话规范化。

把调用方的消息列表转换成 Provider 需要的严格交替轮次：

- assistant -> model，user -> user。
- system 不单独成轮，而是带上 ``[SYSTEM CONTEXT]`` 标签并入当前正在构建的轮次；
  若此时还没有任何轮次，则作为第一条 user 轮次。
- 相邻同角色的消息以换行拼接到上一轮，不新开一轮。

结果中不会出现两个相邻的同角色轮次，且不丢弃任何内容。
"""

from typing import Iterable, List

from aura_core.domain.models import Message, Turn

SYSTEM_CONTEXT_TAG = "[SYSTEM CONTEXT]"


def _system_text(content: str) -> str:
    return f"{SYSTEM_CONTEXT_TAG} {content}"


def normalize_turns(messages: Iterable[Message]) -> List[Turn]:
    turns: List[Turn] = []
    for m in messages:
        if m.role == "system":
            text = _system_text(m.content)
            if turns:
                turns[-1].text += f"\n{text}"
            else:
                turns.append(Turn(role="user", text=text))
            continue

        role = "model" if m.role == "assistant" else "user"
        if turns and turns[-1].role == role:
            turns[-1].text += f"\n{m.content}"
        else:
            turns.append(Turn(role=role, text=m.content))
    return turns
