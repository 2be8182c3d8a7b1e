"""对外 API 服务模块。

把 OCR、摘要与对话编排组合成扫描应用需要的几个操作，
供上层 UI 直接调用。
"""

import asyncio
import logging
from typing import Any, Optional

from scanner_core.agents.summary_agent import SummaryAgent
from scanner_core.config.settings import settings
from scanner_core.domain.conversation import Message
from scanner_core.domain.exceptions import ExchangeError
from scanner_core.infrastructure.logging.logger import logger
from scanner_core.ocr import TextExtractor, recognize_context
from scanner_core.orchestrator.facade import ChatOrchestrator
from scanner_core.orchestrator.state import describe_error
from scanner_core.providers import create_provider
from scanner_core.providers.base import ProviderClient


class DocumentChatService:
    """一张图片 → 原文 → 摘要 / 对话。"""

    def __init__(
        self,
        extractor: TextExtractor,
        orchestrator: ChatOrchestrator,
        summary_agent: SummaryAgent,
    ):
        self._extractor = extractor
        self.orchestrator = orchestrator
        self._summary_agent = summary_agent
        self.recognized_text = ""
        self.summary = ""
        self.summary_error: Optional[str] = None

    async def ingest_image(self, image: Any) -> str:
        """识别图片文字；原文变化时丢弃旧会话与摘要。

        Raises:
            ExtractionError: OCR 失败，已有的原文与会话保持不变。
        """
        text = await asyncio.to_thread(recognize_context, self._extractor, image)
        if text != self.recognized_text:
            self.orchestrator.reset()
            self.summary = ""
            self.summary_error = None
        self.recognized_text = text
        logger.info("Recognized text", extra={"extra": {"chars": len(text), "lines": text.count("\n") + 1}})
        return text

    async def open_chat(self) -> bool:
        return await self.orchestrator.start(self.recognized_text)

    async def ask(self, question: str) -> Optional[Message]:
        return await self.orchestrator.send(question)

    async def summarize(self) -> Optional[str]:
        """对当前原文生成摘要，失败原因写入 summary_error。"""
        self.summary_error = None
        self.summary = ""
        try:
            result = await self._summary_agent.summarize(self.recognized_text)
        except ExchangeError as exc:
            self.summary_error = describe_error(exc)
            return None
        self.summary = result or ""
        return result

    def clear(self) -> None:
        self.recognized_text = ""
        self.summary = ""
        self.summary_error = None
        self.orchestrator.reset()


def build_service(
    extractor: TextExtractor,
    provider_name: Optional[str] = None,
    provider_client: Optional[ProviderClient] = None,
) -> DocumentChatService:
    """按 settings 组装默认服务。"""
    provider = provider_client or create_provider(provider_name)
    orchestrator = ChatOrchestrator(provider)
    summary_agent = SummaryAgent(provider, temperature=settings.temperature)
    logger.info(
        "Built document chat service",
        extra={"extra": {"provider": provider.name, "model": settings.default_model}},
    )
    return DocumentChatService(extractor, orchestrator, summary_agent)
