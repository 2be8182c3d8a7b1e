"""对话会话编排。

- lifecycle: 会话创建、上下文注入与销毁。
- exchange_queue: 同一会话内问答的串行化。
- state: 对话记录与 UI 可观察状态。
- facade: 对外入口 ChatOrchestrator。
"""

from scanner_core.orchestrator.facade import ChatOrchestrator
from scanner_core.orchestrator.lifecycle import Session, SessionLifecycleManager

__all__ = ["ChatOrchestrator", "Session", "SessionLifecycleManager"]
