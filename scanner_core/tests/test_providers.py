import pytest

from scanner_core.providers import create_provider
from scanner_core.providers.glm_client import GlmClient
from scanner_core.providers.kimi_client import KimiClient
from scanner_core.providers.registry import get_model_config, get_provider_config


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "glm"
        glm_api_key = "g" * 12
        http_timeout = 1.0
        glm_base_url = "https://open.bigmodel.cn/api/paas/v4"
        kimi_api_key = None

    monkeypatch.setattr("scanner_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, GlmClient)


def test_create_provider_explicit(monkeypatch):
    class DummySettings:
        default_provider = "glm"
        kimi_api_key = "k" * 12
        http_timeout = 1.0
        kimi_base_url = "https://api.moonshot.cn/v1"
        glm_api_key = None

    monkeypatch.setattr("scanner_core.providers.settings", DummySettings())
    provider = create_provider("KIMI")
    assert isinstance(provider, KimiClient)
    assert provider.availability() == (True, None)


def test_registry_lookup():
    assert get_provider_config("GLM").name == "glm"
    assert get_model_config("glm", "doc-chat").provider_model == "glm-4.6"
    with pytest.raises(KeyError):
        get_provider_config("openai")
    with pytest.raises(KeyError):
        get_model_config("kimi", "doc-chat-flash")
