"""Scanner Core 顶层包。

该包提供“拍照 → OCR → 与模型对话”应用的核心实现，
包括配置加载、领域模型、Provider 适配、有状态会话句柄、
对话编排（上下文注入、问答串行化、状态与错误）以及一次性摘要。
"""

from scanner_core.api.service import DocumentChatService, build_service
from scanner_core.orchestrator import ChatOrchestrator

__all__ = ["ChatOrchestrator", "DocumentChatService", "build_service"]
