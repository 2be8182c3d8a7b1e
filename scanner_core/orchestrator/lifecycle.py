"""会话生命周期管理。

负责在一次对话上下文中创建、注入上下文（priming）以及销毁模型会话句柄。
priming 是一轮隐藏的对话：prompt 发给模型，但回答（通常是 "OK"）
不会进入可见的对话记录。
"""

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Optional

from scanner_core.domain.conversation import SessionStatus
from scanner_core.domain.exceptions import BusinessError, SessionError
from scanner_core.infrastructure.logging.logger import log_event
from scanner_core.prompts import render_prompt
from scanner_core.providers.base import ProviderClient
from scanner_core.providers.session import ModelSession
from scanner_core.orchestrator.worker import abandon, run_blocking, wait_bounded


@dataclass
class Session:
    """一次对话上下文独占的模型会话。

    generation 单调递增，用来识别 reset 之后才返回的过期结果。
    """

    handle: ModelSession
    priming_context: str
    generation: int
    status: SessionStatus = SessionStatus.PRIMING


class SessionLifecycleManager:
    def __init__(
        self,
        provider_client: ProviderClient,
        session_factory: Callable[[], ModelSession],
        priming_timeout: Optional[float] = None,
        locale: str = "ja",
        executor: Optional[Executor] = None,
    ):
        self._provider_client = provider_client
        self._session_factory = session_factory
        self._priming_timeout = priming_timeout
        self._locale = locale
        self._executor = executor
        self._session: Optional[Session] = None
        self._failure: Optional[SessionError] = None
        self._generation = 0

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def status(self) -> SessionStatus:
        if self._session is not None:
            return self._session.status
        if self._failure is not None:
            return SessionStatus.FAILED
        return SessionStatus.UNINITIALIZED

    @property
    def failure(self) -> Optional[SessionError]:
        return self._failure

    def is_current(self, session: Session) -> bool:
        active = self._session
        return active is session and active.generation == session.generation

    async def start(self, context_text: str) -> Optional[Session]:
        """创建并 priming 一个会话。

        已处于 PRIMING/READY 时直接返回当前会话，不会发起第二次 priming。
        失败后的会话必须先 reset()，否则再次调用只会重新抛出记录的错误。

        Returns:
            就绪（或正在 priming）的会话；若 priming 期间被 reset 则返回 None。

        Raises:
            SessionError: UNAVAILABLE 或 PRIMING_FAILED。
        """
        current = self._session
        if current is not None and current.status in (SessionStatus.PRIMING, SessionStatus.READY):
            return current
        if self._failure is not None:
            raise self._failure

        available, reason = self._provider_client.availability()
        if not available:
            self._failure = SessionError(
                code=SessionError.UNAVAILABLE,
                message=reason or "model capability is not available",
                provider=self._provider_client.name,
            )
            log_event(logging.WARNING, "Model unavailable", {"provider": self._provider_client.name}, reason=reason)
            raise self._failure

        self._generation += 1
        session = Session(
            handle=self._session_factory(),
            priming_context=context_text,
            generation=self._generation,
        )
        self._session = session
        log_ctx = {"session_id": session.handle.id, "generation": session.generation}
        log_event(logging.INFO, "Priming session", log_ctx, context_chars=len(context_text))

        prompt = render_prompt("priming", context_text, self._locale)
        future = run_blocking(session.handle.respond, prompt, executor=self._executor)
        detail: Optional[str] = None
        try:
            await wait_bounded(future, self._priming_timeout)
        except asyncio.TimeoutError:
            abandon(future)
            detail = f"timed out after {self._priming_timeout}s"
        except BusinessError as exc:
            detail = exc.message
        except Exception as exc:  # noqa: BLE001 - 任何模型侧异常都视为 priming 失败
            detail = str(exc) or exc.__class__.__name__

        if not self.is_current(session):
            log_event(logging.INFO, "Discarded stale priming result", log_ctx)
            return None

        if detail is not None:
            session.status = SessionStatus.FAILED
            self._failure = SessionError(code=SessionError.PRIMING_FAILED, message=detail)
            log_event(logging.ERROR, "Priming failed", log_ctx, error=detail)
            raise self._failure

        session.status = SessionStatus.READY
        log_event(logging.INFO, "Session ready", log_ctx)
        return session

    def reset(self) -> None:
        """丢弃当前会话与记录的失败，回到初始状态。"""
        if self._session is not None:
            log_event(
                logging.INFO,
                "Session discarded",
                {"session_id": self._session.handle.id, "generation": self._session.generation},
                status=self._session.status.value,
            )
        self._session = None
        self._failure = None
