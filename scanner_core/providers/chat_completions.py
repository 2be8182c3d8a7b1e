"""OpenAI 兼容 chat/completions 协议的通用适配器。

GLM 与 Kimi 的接口风格一致：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本模块负责：

1. 接收统一的 ChatRequest。
2. 转换为厂商 HTTP 请求格式并发送。
3. 处理网络/限流/API 异常。
4. 将响应 JSON 解析为统一的 ChatResult。

子类只需声明 name、ProviderConfig 以及 settings 中对应的字段名。
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from scanner_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from scanner_core.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from scanner_core.providers.registry import ModelConfig, ProviderConfig, get_model_config


class ChatCompletionsClient:
    """chat/completions 客户端基类（仅非流式）。"""

    name: str = ""
    config: ProviderConfig
    api_key_field: str = ""
    base_url_field: str = ""

    def __init__(self, cfg):
        # cfg 里包含 base_url、api_key、超时等配置
        self._settings = cfg

    @property
    def _api_key(self) -> Optional[str]:
        return getattr(self._settings, self.api_key_field, None)

    @property
    def _base_url(self) -> str:
        return getattr(self._settings, self.base_url_field, None) or self.config.base_url

    def availability(self) -> Tuple[bool, Optional[str]]:
        if not self._api_key:
            return False, f"{self.api_key_field.upper()} not set"
        return True, None

    def chat(self, req: ChatRequest) -> ChatResult:
        if not self._api_key:
            # 配置缺失走 ValidationError，方便上层统一处理
            raise ValidationError(
                code=ValidationError.MISSING_API_KEY,
                message=f"{self.api_key_field.upper()} not set",
            )
        try:
            model_cfg = get_model_config(self.name, req.model)
        except KeyError as e:
            raise ValidationError(code=ValidationError.UNKNOWN_MODEL, message=e.args[0], provider=self.name) from None
        payload = self._build_payload(req, model_cfg)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code, provider=self.name)
        data = resp.json()
        return self._parse_response(data, req)

    # ---- 辅助方法 ----

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> dict:
        return {
            "model": model_cfg.provider_model,
            "messages": [self._message_to_payload(m) for m in req.messages],
            "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
            "top_p": req.top_p,
            "stream": False,
        }

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        choices: List[ChatChoice] = []
        for i, ch in enumerate(data.get("choices", [])):
            msg = ch.get("message") or {}
            cm = ChatMessage(role=msg.get("role") or "assistant", content=msg.get("content") or "")
            choices.append(ChatChoice(index=ch.get("index", i), message=cm, finish_reason=ch.get("finish_reason")))
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage, raw=data)

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        return {"role": message.role, "content": message.content}
