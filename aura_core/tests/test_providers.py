import pytest

from aura_core.domain.models import ProviderCandidate, Turn
from aura_core.providers import default_adapters
from aura_core.providers.gemini_client import GeminiAdapter
from aura_core.providers.groq_client import GroqAdapter
from aura_core.providers.openai_client import OpenAIAdapter
from aura_core.providers.registry import (
    GEMINI_ENDPOINT,
    PROVIDER_NAMES,
    GatewayConfig,
    get_provider_config,
)

TURNS = [Turn(role="user", text="hi"), Turn(role="model", text="HELLO"), Turn(role="user", text="2+2?")]


class SettingsStub:
    default_provider = "groq"
    gemini_api_key = "gemini-key-123"
    groq_api_key = None
    openai_api_key = "openai-key-123"
    gemini_models = None
    groq_models = ["llama-a", "llama-b"]
    openai_models = None
    force_json = True
    http_timeout = 5.0
    persona_uppercase = True


def test_default_adapters_cover_registry():
    adapters = default_adapters()
    assert set(adapters) == set(PROVIDER_NAMES)
    assert isinstance(adapters["gemini"], GeminiAdapter)
    assert isinstance(adapters["groq"], GroqAdapter)
    assert isinstance(adapters["openai"], OpenAIAdapter)
    with pytest.raises(KeyError):
        get_provider_config("mistral")


def test_gemini_chain_order():
    cfg = get_provider_config("Gemini")
    assert [c.model_id for c in cfg.candidates] == ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"]
    assert [c.force_json for c in cfg.candidates] == [True, True, False]


def test_gemini_build_request():
    candidate = ProviderCandidate(GEMINI_ENDPOINT, "gemini-1.5-flash", force_json=True)
    req = GeminiAdapter().build_request(TURNS, candidate, "secret-key", system_prompt="be AURA")
    assert req.url.endswith("/models/gemini-1.5-flash:generateContent")
    assert req.params == {"key": "secret-key"}
    assert req.json["systemInstruction"] == {"parts": [{"text": "be AURA"}]}
    assert [c["role"] for c in req.json["contents"]] == ["user", "model", "user"]
    assert req.json["generationConfig"] == {"responseMimeType": "application/json"}


def test_gemini_build_request_without_json_mode():
    candidate = ProviderCandidate(GEMINI_ENDPOINT, "gemini-pro", force_json=False)
    req = GeminiAdapter().build_request(TURNS, candidate, "k")
    assert "generationConfig" not in req.json
    assert "systemInstruction" not in req.json


def test_gemini_extract_text():
    adapter = GeminiAdapter()
    data = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
    assert adapter.extract_text(data) == "ab"
    assert adapter.extract_text({"candidates": []}) is None
    assert adapter.extract_text({"promptFeedback": {"blockReason": "SAFETY"}}) is None
    assert adapter.extract_text("nope") is None


def test_openai_build_request():
    candidate = get_provider_config("openai").candidates[0]
    req = OpenAIAdapter().build_request(TURNS, candidate, "sk-test", system_prompt="be AURA")
    assert req.headers["Authorization"] == "Bearer sk-test"
    assert req.json["model"] == "gpt-3.5-turbo"
    assert req.json["messages"][0] == {"role": "system", "content": "be AURA"}
    assert [m["role"] for m in req.json["messages"][1:]] == ["user", "assistant", "user"]
    assert req.json["response_format"] == {"type": "json_object"}
    assert req.params == {}


def test_openai_extract_text_variants():
    adapter = OpenAIAdapter()
    assert adapter.extract_text({"choices": [{"message": {"content": "ok"}}]}) == "ok"
    parts = {"choices": [{"message": {"content": [{"text": "a"}, {"text": "b"}]}}]}
    assert adapter.extract_text(parts) == "a\nb"
    assert adapter.extract_text({"choices": [{"text": "legacy"}]}) == "legacy"
    assert adapter.extract_text({"choices": [{"message": {"content": ""}}]}) is None
    assert adapter.extract_text({"choices": []}) is None


def test_groq_reuses_openai_format():
    candidate = get_provider_config("groq").candidates[0]
    req = GroqAdapter().build_request(TURNS, candidate, "gsk-test")
    assert req.url == "https://api.groq.com/openai/v1/chat/completions"
    assert req.json["model"] == "llama-3.3-70b-versatile"


def test_gateway_config_from_settings():
    config = GatewayConfig.from_settings(SettingsStub(), system_prompt="sys")
    assert config.credential_for("gemini") == "gemini-key-123"
    assert config.credential_for("groq") is None
    assert [c.model_id for c in config.candidates_for("groq")] == ["llama-a", "llama-b"]
    assert len(config.candidates_for("gemini")) == 3
    assert config.candidates_for("mistral") == ()
    assert config.default_provider == "groq"
    assert config.http_timeout == 5.0
    with pytest.raises(TypeError):
        config.credentials["groq"] = "x"  # type: ignore[index]


def test_gateway_config_disables_json_mode():
    class NoJson(SettingsStub):
        force_json = False

    config = GatewayConfig.from_settings(NoJson())
    assert all(not c.force_json for c in config.candidates_for("gemini"))


@pytest.mark.parametrize(
    "data",
    [
        {"candidates": {"error": "weird"}},
        {"candidates": 5},
        {"candidates": [{"content": ["x"]}]},
        {"candidates": [{"content": {"parts": "text"}}]},
    ],
)
def test_gemini_extract_text_tolerates_odd_shapes(data):
    assert GeminiAdapter().extract_text(data) is None


@pytest.mark.parametrize(
    "data",
    [
        {"choices": 5},
        {"choices": {"0": {"message": {"content": "x"}}}},
        {"choices": ["text"]},
        {"choices": [{"message": "flat"}]},
    ],
)
def test_openai_extract_text_tolerates_odd_shapes(data):
    assert OpenAIAdapter().extract_text(data) is None
