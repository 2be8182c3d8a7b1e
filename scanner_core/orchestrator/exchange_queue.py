"""问答串行化队列。

同一个会话同一时刻最多只有一个 respond() 在执行：会话带有对话记忆，
两次调用交错会把上下文弄乱。后来的提问会立即写入对话记录，
但要排队等前一次调用结束（成功或失败）后才会真正发给模型。
"""

import asyncio
import contextlib
import logging
from concurrent.futures import Executor
from typing import Callable, Optional, Set

from scanner_core.domain.conversation import ExchangeRequest, Message, SessionStatus
from scanner_core.domain.exceptions import BusinessError, ExchangeError, SessionError, ValidationError
from scanner_core.domain.models import ModelResponse
from scanner_core.infrastructure.logging.logger import log_event
from scanner_core.orchestrator.lifecycle import Session
from scanner_core.orchestrator.state import ConversationState
from scanner_core.orchestrator.worker import run_blocking, wait_bounded


class ExchangeQueue:
    def __init__(
        self,
        session: Session,
        state: ConversationState,
        is_current: Callable[[Session], bool],
        timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
    ):
        self.session = session
        self._state = state
        self._is_current = is_current
        self._timeout = timeout
        self._executor = executor
        # asyncio.Lock 按 FIFO 顺序唤醒等待者
        self._lock = asyncio.Lock()
        self._outstanding = 0
        self._in_flight = 0
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._log_ctx = {"session_id": session.handle.id, "generation": session.generation}

    @property
    def outstanding(self) -> int:
        """已接收但尚未结束的提问数（含正在执行的）。"""
        return self._outstanding

    @property
    def in_flight(self) -> int:
        """正在执行的模型调用数，恒为 0 或 1。"""
        return self._in_flight

    def submit(self, question: str) -> "asyncio.Future[Message]":
        """接收一次提问，返回最终模型消息（或异常）的 Future。

        Raises:
            SessionError: NOT_READY，会话未就绪。
            ValidationError: EMPTY_INPUT，去除首尾空白后为空。
        """
        if self.session.status != SessionStatus.READY or not self._is_current(self.session):
            raise SessionError(code=SessionError.NOT_READY, message="session is not ready")
        text = question.strip()
        if not text:
            raise ValidationError(code=ValidationError.EMPTY_INPUT, message="question is empty")

        self._state.begin_submission()
        user_message = self._state.append(text, "user")
        request = ExchangeRequest(question=text, submitted_at=user_message.sequence)
        self._outstanding += 1
        self._state.thinking = True
        log_event(
            logging.INFO,
            "Accepted exchange",
            self._log_ctx,
            sequence=request.submitted_at,
            queued_behind=self._outstanding - 1,
        )

        loop = asyncio.get_running_loop()
        handle: "asyncio.Future[Message]" = loop.create_future()
        task = loop.create_task(self._process(request, handle))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return handle

    async def _process(self, request: ExchangeRequest, handle: "asyncio.Future[Message]") -> None:
        async with self._lock:
            if not self._is_current(self.session):
                self._discard(handle, request)
                return
            self._in_flight += 1
            log_event(logging.INFO, "Dispatching exchange", self._log_ctx, sequence=request.submitted_at)
            future = run_blocking(self.session.handle.respond, request.question, executor=self._executor)
            try:
                response = await wait_bounded(future, self._timeout)
            except asyncio.TimeoutError:
                self._fail(
                    handle,
                    request,
                    ExchangeError(code=ExchangeError.TIMEOUT, message=f"no response after {self._timeout}s"),
                )
                # 超时已经上报，但工作线程仍在调用模型；结束前不放行下一个请求
                with contextlib.suppress(Exception):
                    await future
            except BusinessError as exc:
                self._fail(handle, request, ExchangeError(code=ExchangeError.MODEL_FAILURE, message=exc.message))
            except Exception as exc:  # noqa: BLE001 - 任何模型侧异常都视为本轮失败
                detail = str(exc) or exc.__class__.__name__
                self._fail(handle, request, ExchangeError(code=ExchangeError.MODEL_FAILURE, message=detail))
            else:
                self._complete(handle, request, response)
            finally:
                self._in_flight -= 1

    def _complete(self, handle: "asyncio.Future[Message]", request: ExchangeRequest, response: ModelResponse) -> None:
        if not self._is_current(self.session):
            self._discard(handle, request)
            return
        message = self._state.append(response.content.strip(), "model")
        self._finish()
        log_event(
            logging.INFO,
            "Exchange completed",
            self._log_ctx,
            sequence=request.submitted_at,
            answer_sequence=message.sequence,
        )
        if not handle.done():
            handle.set_result(message)

    def _fail(self, handle: "asyncio.Future[Message]", request: ExchangeRequest, error: ExchangeError) -> None:
        if not self._is_current(self.session):
            self._discard(handle, request)
            return
        self._state.record_failure(error)
        self._finish()
        log_event(
            logging.ERROR,
            "Exchange failed",
            self._log_ctx,
            sequence=request.submitted_at,
            code=error.code,
            error=error.message,
        )
        if not handle.done():
            handle.set_exception(error)

    def _discard(self, handle: "asyncio.Future[Message]", request: ExchangeRequest) -> None:
        log_event(logging.INFO, "Discarded stale exchange", self._log_ctx, sequence=request.submitted_at)
        if not handle.done():
            handle.set_exception(ExchangeError(code=ExchangeError.DISCARDED, message="session was reset"))

    def _finish(self) -> None:
        self._outstanding -= 1
        self._state.thinking = self._outstanding > 0
