"""Provider 抽象接口。

会话句柄不直接依赖具体厂商的 HTTP SDK，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 GlmClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。
- availability() 用于在发起任何调用之前判断当前环境能否使用该模型。
"""

from typing import Optional, Protocol, Tuple
from scanner_core.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。"""

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...

    def availability(self) -> Tuple[bool, Optional[str]]:
        """返回 (是否可用, 不可用原因)。"""

        ...
