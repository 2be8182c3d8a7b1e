"""对话编排器：UI 唯一需要调用的入口。

状态机：

    UNINITIALIZED -> PRIMING -> READY <-> EXCHANGING
                        |
                        +-> FAILED

任意状态都可以通过 reset() 回到 UNINITIALIZED。
"""

from concurrent.futures import Executor
from typing import Optional, Tuple

from scanner_core.config.settings import settings
from scanner_core.domain.conversation import Message, OrchestratorStatus, SessionStatus
from scanner_core.domain.exceptions import ExchangeError, SessionError
from scanner_core.orchestrator.exchange_queue import ExchangeQueue
from scanner_core.orchestrator.lifecycle import SessionLifecycleManager
from scanner_core.orchestrator.state import ConversationState
from scanner_core.providers.base import ProviderClient
from scanner_core.providers.session import ModelSession


class ChatOrchestrator:
    def __init__(
        self,
        provider_client: ProviderClient,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_context_messages: Optional[int] = None,
        priming_timeout: Optional[float] = None,
        exchange_timeout: Optional[float] = None,
        locale: Optional[str] = None,
        executor: Optional[Executor] = None,
    ):
        """初始化编排器。

        Args:
            provider_client: Provider 客户端实例
            model: 逻辑模型名，默认取 settings.default_model
            temperature: 生成温度，默认取 settings.temperature
            max_context_messages: 每轮随请求发送的历史消息上限
            priming_timeout: 上下文注入轮次的超时（秒）
            exchange_timeout: 单次问答的超时（秒）
            locale: 提示词模板语言
            executor: 执行阻塞模型调用的线程池，默认使用事件循环的默认线程池
        """
        self._model = model or settings.default_model
        self._temperature = settings.temperature if temperature is None else temperature
        self._max_context_messages = max_context_messages or settings.max_context_messages
        self._exchange_timeout = exchange_timeout or settings.exchange_timeout
        self._executor = executor
        self._provider_client = provider_client
        self._state = ConversationState()
        self._lifecycle = SessionLifecycleManager(
            provider_client,
            session_factory=self._new_model_session,
            priming_timeout=priming_timeout or settings.priming_timeout,
            locale=locale or settings.prompt_locale,
            executor=executor,
        )
        self._queue: Optional[ExchangeQueue] = None

    def _new_model_session(self) -> ModelSession:
        return ModelSession(
            self._provider_client,
            model=self._model,
            temperature=self._temperature,
            max_context_messages=self._max_context_messages,
        )

    # ---- 操作 ----

    async def start(self, context_text: str) -> bool:
        """打开对话视图时调用一次。失败原因写入 last_error。"""
        try:
            session = await self._lifecycle.start(context_text)
        except SessionError as exc:
            self._state.record_failure(exc)
            return False
        return session is not None

    async def send(self, question: str) -> Optional[Message]:
        """提问并等待回答。

        空白输入静默忽略；问答失败时返回 None，原因见 last_error()。

        Raises:
            SessionError: NOT_READY，会话尚未就绪（调用方误用）。
        """
        if not question.strip():
            return None
        queue = self._active_queue()
        handle = queue.submit(question)
        try:
            return await handle
        except ExchangeError:
            # 失败原因已由队列写入 last_error；DISCARDED 表示会话已被 reset
            return None

    def reset(self) -> None:
        """丢弃会话与对话记录（例如 OCR 结果发生变化时）。"""
        self._lifecycle.reset()
        self._state.clear()
        self._queue = None

    # ---- 只读快照 ----

    def transcript(self) -> Tuple[Message, ...]:
        return self._state.transcript()

    def status(self) -> OrchestratorStatus:
        session_status = self._lifecycle.status
        if session_status == SessionStatus.READY:
            if self._state.thinking:
                return OrchestratorStatus.EXCHANGING
            return OrchestratorStatus.READY
        return OrchestratorStatus(session_status.value)

    def last_error(self) -> Optional[str]:
        return self._state.last_error

    def thinking(self) -> bool:
        return self._state.thinking

    @property
    def in_flight(self) -> int:
        return self._queue.in_flight if self._queue else 0

    def _active_queue(self) -> ExchangeQueue:
        session = self._lifecycle.current
        if session is None or session.status != SessionStatus.READY:
            raise SessionError(code=SessionError.NOT_READY, message="session is not ready")
        if self._queue is None or self._queue.session is not session:
            self._queue = ExchangeQueue(
                session,
                self._state,
                is_current=self._lifecycle.is_current,
                timeout=self._exchange_timeout,
                executor=self._executor,
            )
        return self._queue
