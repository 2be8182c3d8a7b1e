"""对话状态：可见消息记录与 UI 可观察的标志位。

只能在事件循环线程上修改；模型调用结果回到事件循环后才写入。
"""

from typing import List, Optional, Tuple

from scanner_core.domain.conversation import Message, Origin
from scanner_core.domain.exceptions import BusinessError, ExchangeError, SessionError


# 展示给用户的错误文案
ERROR_TEMPLATES = {
    SessionError.UNAVAILABLE: "この機能は現在の環境では利用できません: {detail}",
    SessionError.PRIMING_FAILED: "セッションの開始に失敗しました: {detail}",
    ExchangeError.MODEL_FAILURE: "エラーが発生しました: {detail}",
    ExchangeError.TIMEOUT: "応答がタイムアウトしました: {detail}",
}


def describe_error(error: BusinessError) -> str:
    template = ERROR_TEMPLATES.get(error.code, "エラーが発生しました: {detail}")
    return template.format(detail=error.message)


class ConversationState:
    def __init__(self) -> None:
        self._transcript: List[Message] = []
        self._next_sequence = 0
        self.thinking = False
        self.last_error: Optional[str] = None

    def append(self, text: str, origin: Origin) -> Message:
        message = Message(text=text, origin=origin, sequence=self._next_sequence)
        self._next_sequence += 1
        self._transcript.append(message)
        return message

    def transcript(self) -> Tuple[Message, ...]:
        return tuple(self._transcript)

    def begin_submission(self) -> None:
        """新提问被接收：清除上一次的错误。"""
        self.last_error = None

    def record_failure(self, error: BusinessError) -> None:
        self.last_error = describe_error(error)

    def clear(self) -> None:
        self._transcript = []
        self._next_sequence = 0
        self.thinking = False
        self.last_error = None
