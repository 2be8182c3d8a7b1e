"""有状态的模型会话句柄。

chat/completions 接口本身是无状态的，会话记忆由这里维护：
每次 respond() 都把历史（裁剪到窗口大小）连同新的 prompt 一并发送，
只有在调用成功后才把 user/assistant 这一对写入历史。

注意：本类不是线程安全的，同一时刻只能有一个 respond() 在执行，
串行化由上层的 ExchangeQueue 保证。
"""

import logging
import time
from typing import List, Optional
from uuid import uuid4

from scanner_core.domain.exceptions import EmptyResponseError
from scanner_core.domain.models import ChatMessage, ChatRequest, ModelResponse
from scanner_core.infrastructure.logging.logger import log_event
from scanner_core.providers.base import ProviderClient


class ModelSession:
    def __init__(
        self,
        provider_client: ProviderClient,
        model: str,
        temperature: float = 0.3,
        max_context_messages: int = 20,
        instructions: Optional[str] = None,
    ):
        self.id = f"s-{uuid4().hex}"
        self._provider_client = provider_client
        self._model = model
        self._temperature = temperature
        self._max_context_messages = max_context_messages
        self._instructions = instructions
        # 第一轮（上下文注入）始终保留，不参与窗口裁剪
        self._anchor: List[ChatMessage] = []
        self._history: List[ChatMessage] = []

    @property
    def turn_count(self) -> int:
        return (len(self._anchor) + len(self._history)) // 2

    def respond(self, prompt: str) -> ModelResponse:
        """发送一轮对话并返回模型回答，失败时历史保持不变。"""
        messages = self._build_messages(prompt)
        req = ChatRequest(
            provider=self._provider_client.name,
            model=self._model,
            messages=messages,
            temperature=self._temperature,
        )
        log_ctx = {"session_id": self.id, "provider": self._provider_client.name}
        start_time = time.time()
        result = self._provider_client.chat(req)
        if not result.choices:
            raise EmptyResponseError(
                code="EMPTY_RESPONSE",
                message="Provider returned no choices",
                provider=self._provider_client.name,
            )
        content = result.choices[0].message.content or ""
        self._commit(prompt, content)
        usage_meta = {}
        if result.usage:
            usage_meta = {
                "prompt_tokens": result.usage.prompt_tokens,
                "completion_tokens": result.usage.completion_tokens,
                "total_tokens": result.usage.total_tokens,
            }
        log_event(
            logging.INFO,
            "Model responded",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            message_count=len(messages),
            **usage_meta,
        )
        return ModelResponse(content=content, usage=result.usage)

    def _build_messages(self, prompt: str) -> List[ChatMessage]:
        messages: List[ChatMessage] = []
        if self._instructions:
            messages.append(ChatMessage(role="system", content=self._instructions))
        messages.extend(self._anchor)
        history = self._history
        window = self._max_context_messages - len(self._anchor)
        if len(history) > window:
            # 按 user/assistant 成对裁剪，避免以 assistant 开头
            cut = len(history) - max(window, 0)
            cut += cut % 2
            history = history[cut:]
        messages.extend(history)
        messages.append(ChatMessage(role="user", content=prompt))
        return messages

    def _commit(self, prompt: str, content: str) -> None:
        pair = [ChatMessage(role="user", content=prompt), ChatMessage(role="assistant", content=content)]
        if not self._anchor:
            self._anchor = pair
        else:
            self._history.extend(pair)
