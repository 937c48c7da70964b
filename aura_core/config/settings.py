"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次降低。
进程启动时加载一次，之后由 GatewayConfig 冻结为只读对象注入路由器。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("AURA_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """网关配置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(
        default="gemini",
        description="请求未指定 provider 时使用的名称：gemini、groq、openai",
    )

    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API 密钥")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API 密钥")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")

    # 为空时使用 registry 中的默认回退链
    gemini_models: Optional[List[str]] = Field(default=None, description="Gemini 回退模型列表（有序）")
    groq_models: Optional[List[str]] = Field(default=None, description="Groq 回退模型列表（有序）")
    openai_models: Optional[List[str]] = Field(default=None, description="OpenAI 回退模型列表（有序）")
    force_json: bool = Field(default=True, description="是否对支持的模型开启强制 JSON 输出")

    http_timeout: float = Field(default=30.0, ge=1.0, description="单个候选调用的超时时间（秒）")

    # ---- 持久化 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    history_enabled: bool = Field(default=True, description="是否保存对话历史")
    history_limit: int = Field(default=50, ge=1, le=500, description="历史查询默认条数")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 人设 ----
    persona_uppercase: bool = Field(default=True, description="回复是否统一转为大写")
    system_prompt_locale: str = Field(default="en", description="系统提示词语言目录")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("gemini_api_key", "groq_api_key", "openai_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("default_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
