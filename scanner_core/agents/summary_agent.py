"""一次性摘要 Agent。

与对话会话无关：每次调用都新建一个临时会话，只发一轮摘要 prompt。
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

from scanner_core.config.settings import settings
from scanner_core.domain.exceptions import BusinessError, ExchangeError
from scanner_core.infrastructure.logging.logger import log_event
from scanner_core.orchestrator.worker import abandon, run_blocking, wait_bounded
from scanner_core.prompts import render_prompt
from scanner_core.providers.base import ProviderClient
from scanner_core.providers.session import ModelSession


class SummaryAgent:
    """OCR 原文摘要的便捷包装类。"""

    def __init__(
        self,
        provider_client: ProviderClient,
        model_name: Optional[str] = None,
        temperature: float = 0.3,
        timeout: Optional[float] = None,
        locale: Optional[str] = None,
        executor: Optional[Executor] = None,
    ):
        self._provider_client = provider_client
        self._model = model_name or settings.default_model
        self._temperature = temperature
        self._timeout = timeout or settings.exchange_timeout
        self._locale = locale or settings.prompt_locale
        self._executor = executor

    async def summarize(self, text: str) -> Optional[str]:
        """生成 3〜5 条要点的摘要。

        Args:
            text: OCR 识别出的原文

        Returns:
            去除首尾空白后的摘要；原文为空白时返回 None，不调用模型。

        Raises:
            ExchangeError: MODEL_FAILURE 或 TIMEOUT。
        """
        source = text.strip()
        if not source:
            return None

        session = ModelSession(self._provider_client, model=self._model, temperature=self._temperature)
        log_ctx = {"session_id": session.id, "purpose": "summary"}
        log_event(logging.INFO, "Summarizing text", log_ctx, source_chars=len(source))
        prompt = render_prompt("summary", source, self._locale)
        future = run_blocking(session.respond, prompt, executor=self._executor)
        try:
            response = await wait_bounded(future, self._timeout)
        except asyncio.TimeoutError:
            abandon(future)
            log_event(logging.ERROR, "Summary timed out", log_ctx, timeout=self._timeout)
            raise ExchangeError(code=ExchangeError.TIMEOUT, message=f"no response after {self._timeout}s")
        except BusinessError as exc:
            log_event(logging.ERROR, "Summary failed", log_ctx, error=exc.message)
            raise ExchangeError(code=ExchangeError.MODEL_FAILURE, message=exc.message) from exc
        except Exception as exc:  # noqa: BLE001 - 任何模型侧异常都视为摘要失败
            detail = str(exc) or exc.__class__.__name__
            log_event(logging.ERROR, "Summary failed", log_ctx, error=detail)
            raise ExchangeError(code=ExchangeError.MODEL_FAILURE, message=detail) from exc
        return response.content.strip()
