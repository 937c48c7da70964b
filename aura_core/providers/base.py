"""Provider 抽象接口。

FallbackRouter 不直接依赖具体厂商的请求格式，而是依赖此协议：

- 每个厂商实现一个 ProviderAdapter（如 GeminiAdapter）。
- build_request: 把规范化后的 Turn 列表与候选模型转换为一次 HTTP 请求描述。
- extract_text: 从厂商响应 JSON 中取出生成文本，取不到时返回 None。

适配器本身不做网络 IO，发送、超时与回退都由路由器统一处理。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence

from aura_core.domain.models import ProviderCandidate, Turn


@dataclass
class ProviderHttpRequest:
    """一次出站 POST 请求的描述。"""

    url: str
    json: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


class ProviderAdapter(Protocol):
    """LLM Provider 适配器协议。

    - name: Provider 名称，用于日志与注册表查找。
    """

    name: str

    def build_request(
        self,
        turns: Sequence[Turn],
        candidate: ProviderCandidate,
        api_key: str,
        system_prompt: str = "",
    ) -> ProviderHttpRequest:
        ...

    def extract_text(self, data: Any) -> Optional[str]:
        ...
