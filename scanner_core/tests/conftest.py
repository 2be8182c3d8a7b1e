import asyncio
import os
import tempfile
import threading
from collections import deque

# 日志写到临时目录，必须在导入 scanner_core 之前设置
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="scanner-logs-"))

import pytest  # noqa: E402

from scanner_core.domain.models import ChatChoice, ChatMessage, ChatResult, ChatUsage  # noqa: E402


class FakeProvider:
    """模拟的 Provider。

    - replies: 依次返回的回答；元素为异常时抛出该异常。队列为空时回显 prompt。
    - gates: 第 N 次调用（从 0 开始计数，priming 也算一次）要等待的 threading.Event。
    """

    name = "fake"

    def __init__(self, replies=None, available=True, reason="model not installed"):
        self.requests = []
        self.gates = {}
        self.active = 0
        self.max_active = 0
        self._replies = deque(replies or [])
        self._available = available
        self._reason = reason
        self._lock = threading.Lock()

    def availability(self):
        if self._available:
            return True, None
        return False, self._reason

    def chat(self, req):
        with self._lock:
            index = len(self.requests)
            self.requests.append(req)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            gate = self.gates.get(index)
            if gate is not None:
                gate.wait(timeout=5)
            with self._lock:
                reply = self._replies.popleft() if self._replies else None
            if isinstance(reply, BaseException):
                raise reply
            if reply is None:
                reply = f"  answer to {req.messages[-1].content}  "
            msg = ChatMessage(role="assistant", content=reply)
            return ChatResult(
                provider="fake",
                model=req.model,
                choices=[ChatChoice(index=0, message=msg, finish_reason="stop")],
                usage=ChatUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
                raw={},
            )
        finally:
            with self._lock:
                self.active -= 1


async def wait_until(predicate, timeout=2.0):
    """轮询直到条件成立（工作线程里的调用没有可 await 的信号）。"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def provider():
    return FakeProvider()
