import pytest

from conftest import FakeProvider
from scanner_core.domain.exceptions import ApiError, EmptyResponseError
from scanner_core.domain.models import ChatResult
from scanner_core.providers.session import ModelSession


def test_respond_keeps_conversational_memory():
    provider = FakeProvider(replies=["OK", "first", "second"])
    session = ModelSession(provider, model="doc-chat")
    session.respond("context")
    session.respond("Q1")
    res = session.respond("Q2")

    assert res.content == "second"
    contents = [(m.role, m.content) for m in provider.requests[-1].messages]
    assert contents == [
        ("user", "context"),
        ("assistant", "OK"),
        ("user", "Q1"),
        ("assistant", "first"),
        ("user", "Q2"),
    ]
    assert session.turn_count == 3


def test_failed_turn_leaves_history_untouched():
    provider = FakeProvider(replies=["OK", ApiError(code="API_ERROR", message="boom"), "fine"])
    session = ModelSession(provider, model="doc-chat")
    session.respond("context")
    with pytest.raises(ApiError):
        session.respond("lost question")
    session.respond("Q")

    contents = [m.content for m in provider.requests[-1].messages]
    assert "lost question" not in contents
    assert session.turn_count == 2


def test_history_window_keeps_priming_turn():
    provider = FakeProvider()
    session = ModelSession(provider, model="doc-chat", max_context_messages=6)
    session.respond("context")
    for i in range(5):
        session.respond(f"Q{i}")
    messages = provider.requests[-1].messages

    # priming 对 + 最近两轮 + 新问题
    assert len(messages) == 7
    assert [m.content for m in messages if m.role == "user"] == ["context", "Q2", "Q3", "Q4"]
    assert messages[2].role == "user"


def test_instructions_become_system_message():
    provider = FakeProvider()
    session = ModelSession(provider, model="doc-chat", instructions="be brief")
    session.respond("hi")
    first = provider.requests[0].messages[0]
    assert (first.role, first.content) == ("system", "be brief")


def test_empty_choices_raise():
    class EmptyProvider:
        name = "empty"

        def chat(self, req):
            return ChatResult(provider="empty", model=req.model, choices=[])

    with pytest.raises(EmptyResponseError):
        ModelSession(EmptyProvider(), model="doc-chat").respond("hi")
