"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- conversation: 可见消息、排队请求与会话状态枚举。
- exceptions: 业务异常类型定义。
"""
