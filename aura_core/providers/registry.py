"""Provider 与回退链配置。

每个 Provider 对应一条有序的候选列表（ProviderCandidate），
FallbackRouter 按顺序逐个尝试。模型列表以数据形式集中在这里，
调用方代码里不出现硬编码的模型名；需要调整时可通过配置覆盖。

GatewayConfig 是在进程启动时从 Settings 冻结出的只读配置，
注入到路由器后不再修改，可被并发请求安全共享。
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple

from aura_core.domain.models import ProviderCandidate


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    credential_field: str
    candidates: Tuple[ProviderCandidate, ...]

    def with_models(self, models: Sequence[str], force_json: Optional[bool] = None) -> "ProviderConfig":
        """用给定模型列表替换回退链，端点模板沿用第一个候选。"""

        template = self.candidates[0].endpoint_template
        default_force = self.candidates[0].force_json if force_json is None else force_json
        return ProviderConfig(
            name=self.name,
            credential_field=self.credential_field,
            candidates=tuple(
                ProviderCandidate(endpoint_template=template, model_id=m, force_json=default_force)
                for m in models
            ),
        )


GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GROQ_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"

# Gemini：三个模型依次回退；gemini-pro 不支持 responseMimeType
GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    credential_field="gemini_api_key",
    candidates=(
        ProviderCandidate(GEMINI_ENDPOINT, "gemini-1.5-flash", force_json=True),
        ProviderCandidate(GEMINI_ENDPOINT, "gemini-1.5-pro", force_json=True),
        ProviderCandidate(GEMINI_ENDPOINT, "gemini-pro", force_json=False),
    ),
)

GROQ_CONFIG = ProviderConfig(
    name="groq",
    credential_field="groq_api_key",
    candidates=(ProviderCandidate(GROQ_ENDPOINT, "llama-3.3-70b-versatile", force_json=True),),
)

OPENAI_CONFIG = ProviderConfig(
    name="openai",
    credential_field="openai_api_key",
    candidates=(ProviderCandidate(OPENAI_ENDPOINT, "gpt-3.5-turbo", force_json=True),),
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = MappingProxyType({
    "gemini": GEMINI_CONFIG,
    "groq": GROQ_CONFIG,
    "openai": OPENAI_CONFIG,
})

PROVIDER_NAMES = tuple(PROVIDER_REGISTRY.keys())


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


@dataclass(frozen=True)
class GatewayConfig:
    """注入 FallbackRouter 的只读配置。

    - credentials: provider 名 -> API 密钥（只含已配置的）。
    - providers: provider 名 -> ProviderConfig（含有序候选）。
    - http_timeout: 单个候选调用的超时（秒）。
    - system_prompt: 人设系统提示词。
    """

    credentials: Mapping[str, str]
    providers: Mapping[str, ProviderConfig]
    http_timeout: float = 30.0
    system_prompt: str = ""
    default_provider: str = "gemini"
    uppercase: bool = True

    def __post_init__(self) -> None:
        # 冻结为只读映射，防止运行期被修改
        object.__setattr__(self, "credentials", MappingProxyType(dict(self.credentials)))
        object.__setattr__(self, "providers", MappingProxyType(dict(self.providers)))

    def credential_for(self, provider: str) -> Optional[str]:
        return self.credentials.get(provider.lower())

    def candidates_for(self, provider: str) -> Tuple[ProviderCandidate, ...]:
        cfg = self.providers.get(provider.lower())
        return cfg.candidates if cfg else ()

    @classmethod
    def from_settings(cls, cfg, system_prompt: str = "") -> "GatewayConfig":
        """从 Settings 构建 GatewayConfig。"""

        credentials: Dict[str, str] = {}
        providers: Dict[str, ProviderConfig] = {}
        for name, pcfg in PROVIDER_REGISTRY.items():
            key = getattr(cfg, pcfg.credential_field, None)
            if key:
                credentials[name] = key
            models = getattr(cfg, f"{name}_models", None)
            if models:
                pcfg = pcfg.with_models(models)
            if not getattr(cfg, "force_json", True):
                pcfg = pcfg.with_models([c.model_id for c in pcfg.candidates], force_json=False)
            providers[name] = pcfg
        return cls(
            credentials=credentials,
            providers=providers,
            http_timeout=float(getattr(cfg, "http_timeout", 30.0)),
            system_prompt=system_prompt,
            default_provider=getattr(cfg, "default_provider", "gemini"),
            uppercase=getattr(cfg, "persona_uppercase", True),
        )
