from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import uuid4


# 可见消息的来源：用户提问 / 模型回答
Origin = Literal["user", "model"]


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    PRIMING = "priming"
    READY = "ready"
    FAILED = "failed"


class OrchestratorStatus(str, Enum):
    """对外暴露给 UI 的整体状态。"""

    UNINITIALIZED = "uninitialized"
    PRIMING = "priming"
    READY = "ready"
    EXCHANGING = "exchanging"
    FAILED = "failed"


@dataclass(frozen=True)
class Message:
    """对话记录中的一条可见消息，创建后不可变。

    sequence 在消息被 ConversationState 接收时分配，决定展示顺序。
    """

    text: str
    origin: Origin
    sequence: int
    id: str = field(default_factory=lambda: f"m-{uuid4().hex}")
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_user(self) -> bool:
        return self.origin == "user"


@dataclass(frozen=True)
class ExchangeRequest:
    """排队等待发给模型的一次提问。"""

    question: str
    submitted_at: int
