"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在编排层或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "PRIMING_FAILED"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 session_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


# ---- 模型调用 ----

class ModelError(BusinessError):
    """底层模型调用失败的基类。"""


class NetworkError(ModelError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(ModelError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(ModelError):
    """Provider 限流错误，由上层负责重试/退避策略。"""


class EmptyResponseError(ModelError):
    """Provider 返回了空的 choices。"""


# ---- 会话编排 ----

class SessionError(BusinessError):
    """会话生命周期错误。

    code:
        - UNAVAILABLE: 当前环境没有可用的模型能力。
        - PRIMING_FAILED: 隐藏的上下文注入轮次失败。
        - NOT_READY: 会话尚未就绪，拒绝提问。
    """

    UNAVAILABLE = "UNAVAILABLE"
    PRIMING_FAILED = "PRIMING_FAILED"
    NOT_READY = "NOT_READY"


class ExchangeError(BusinessError):
    """单次问答失败，可通过再次提问重试。"""

    MODEL_FAILURE = "MODEL_FAILURE"
    TIMEOUT = "TIMEOUT"
    # 会话在排队或调用期间被 reset，结果被丢弃
    DISCARDED = "DISCARDED"


class ValidationError(BusinessError):
    """参数或配置校验失败。"""

    EMPTY_INPUT = "EMPTY_INPUT"
    MISSING_API_KEY = "MISSING_API_KEY"
    UNKNOWN_MODEL = "UNKNOWN_MODEL"


class ExtractionError(BusinessError):
    """OCR 文本提取失败。"""

    EXTRACTION_FAILED = "EXTRACTION_FAILED"
