import asyncio
import threading

import pytest

from conftest import FakeProvider, wait_until
from scanner_core.domain.conversation import SessionStatus
from scanner_core.domain.exceptions import ExchangeError, SessionError, ValidationError
from scanner_core.orchestrator.exchange_queue import ExchangeQueue
from scanner_core.orchestrator.lifecycle import Session
from scanner_core.orchestrator.state import ConversationState
from scanner_core.providers.session import ModelSession


def _queue(provider, status=SessionStatus.READY, current=True, timeout=5.0):
    session = Session(
        handle=ModelSession(provider, model="doc-chat"),
        priming_context="",
        generation=1,
        status=status,
    )
    state = ConversationState()
    flag = {"current": current}
    queue = ExchangeQueue(session, state, is_current=lambda s: flag["current"], timeout=timeout)
    return queue, state, flag


@pytest.mark.asyncio
async def test_submit_rejects_when_not_ready():
    queue, state, _ = _queue(FakeProvider(), status=SessionStatus.PRIMING)
    with pytest.raises(SessionError) as exc_info:
        queue.submit("hello")
    assert exc_info.value.code == SessionError.NOT_READY
    assert state.transcript() == ()


@pytest.mark.asyncio
async def test_submit_rejects_blank_question():
    provider = FakeProvider()
    queue, state, _ = _queue(provider)
    with pytest.raises(ValidationError) as exc_info:
        queue.submit(" \n\t ")
    assert exc_info.value.code == ValidationError.EMPTY_INPUT
    assert state.transcript() == ()
    assert provider.requests == []


@pytest.mark.asyncio
async def test_user_message_is_appended_on_acceptance():
    provider = FakeProvider()
    gate = threading.Event()
    provider.gates[0] = gate
    queue, state, _ = _queue(provider)

    handle = queue.submit("  要点は？ ")
    assert [(m.origin, m.text) for m in state.transcript()] == [("user", "要点は？")]
    assert state.thinking is True
    assert queue.outstanding == 1

    gate.set()
    answer = await handle
    assert answer.text == "answer to 要点は？"
    assert answer.sequence == 1
    assert state.thinking is False
    assert queue.outstanding == 0
    assert queue.in_flight == 0


@pytest.mark.asyncio
async def test_only_one_call_in_flight():
    provider = FakeProvider()
    gate = threading.Event()
    provider.gates[0] = gate
    queue, state, _ = _queue(provider)

    first = queue.submit("Q1")
    second = queue.submit("Q2")
    await wait_until(lambda: len(provider.requests) == 1)
    await asyncio.sleep(0.05)
    assert len(provider.requests) == 1
    assert queue.in_flight == 1
    assert queue.outstanding == 2

    gate.set()
    await asyncio.gather(first, second)
    assert provider.max_active == 1
    assert [m.text for m in state.transcript()] == ["Q1", "Q2", "answer to Q1", "answer to Q2"]


@pytest.mark.asyncio
async def test_failure_surfaces_model_failure():
    provider = FakeProvider(replies=[RuntimeError("socket closed")])
    queue, state, _ = _queue(provider)
    with pytest.raises(ExchangeError) as exc_info:
        await queue.submit("Q")
    assert exc_info.value.code == ExchangeError.MODEL_FAILURE
    assert exc_info.value.message == "socket closed"
    assert [m.text for m in state.transcript()] == ["Q"]
    assert state.last_error == "エラーが発生しました: socket closed"
    assert state.thinking is False


@pytest.mark.asyncio
async def test_stale_completion_is_ignored():
    provider = FakeProvider()
    gate = threading.Event()
    provider.gates[0] = gate
    queue, state, flag = _queue(provider)

    handle = queue.submit("Q")
    await wait_until(lambda: queue.in_flight == 1)
    flag["current"] = False
    gate.set()
    with pytest.raises(ExchangeError) as exc_info:
        await handle
    assert exc_info.value.code == ExchangeError.DISCARDED
    assert [m.text for m in state.transcript()] == ["Q"]
    assert state.last_error is None
