import pytest

from scanner_core.domain.exceptions import ValidationError
from scanner_core.providers.kimi_client import KimiClient
from scanner_core.domain.models import ChatRequest, ChatMessage


class SettingsStub:
    kimi_api_key = "k" * 12
    http_timeout = 1.0
    kimi_base_url = "https://api.moonshot.cn/v1"


def test_kimi_client_parse_basic(monkeypatch):
    kc = KimiClient(SettingsStub())
    req = ChatRequest(provider="kimi", model="doc-chat", messages=[ChatMessage(role="user", content="hi")])

    class Resp:
        status_code = 200

        def json(self):
            return {
                "choices": [
                    {
                        "message": {"role": "assistant", "content": "ok"},
                        "finish_reason": "stop",
                    }
                ],
                "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
            }

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            return Resp()

    monkeypatch.setattr("httpx.Client", Client)
    res = kc.chat(req)
    assert res.provider == "kimi"
    assert res.choices[0].message.content == "ok"
    assert res.choices[0].finish_reason == "stop"


def test_kimi_client_payload(monkeypatch):
    kc = KimiClient(SettingsStub())
    req = ChatRequest(
        provider="kimi",
        model="doc-chat",
        messages=[
            ChatMessage(role="user", content="context", meta={"hidden": True}),
            ChatMessage(role="assistant", content="OK"),
            ChatMessage(role="user", content="要点は？"),
        ],
        temperature=0.0,
    )

    captured = {}

    class Resp:
        status_code = 200

        def json(self):
            return {"choices": [], "usage": {}}

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, **_):
            captured["url"] = url
            captured["payload"] = json
            return Resp()

    monkeypatch.setattr("httpx.Client", Client)
    res = kc.chat(req)
    payload = captured["payload"]
    assert captured["url"].startswith("https://api.moonshot.cn/v1")
    assert payload["model"] == "kimi-k2-turbo-preview"
    assert payload["temperature"] == 0.0
    # meta 不会发给 Provider
    assert payload["messages"][0] == {"role": "user", "content": "context"}
    assert [m["role"] for m in payload["messages"]] == ["user", "assistant", "user"]
    assert res.choices == []
    assert res.usage is None


def test_kimi_client_unknown_model(monkeypatch):
    def _fail_client(*a, **kw):
        raise AssertionError("request should not be sent")

    monkeypatch.setattr("httpx.Client", _fail_client)
    kc = KimiClient(SettingsStub())
    req = ChatRequest(provider="kimi", model="doc-chat-flash", messages=[ChatMessage(role="user", content="hi")])
    with pytest.raises(ValidationError) as exc_info:
        kc.chat(req)
    assert exc_info.value.code == ValidationError.UNKNOWN_MODEL
    assert "doc-chat-flash" in exc_info.value.message
