"""GLM / BigModel Provider 适配器。

具体字段以官方文档为准，本实现只依赖公共字段：model/messages/temperature/max_tokens/top_p/stream。
"""

from scanner_core.config.settings import settings
from scanner_core.providers.chat_completions import ChatCompletionsClient
from scanner_core.providers.registry import GLM_CONFIG


class GlmClient(ChatCompletionsClient):
    """GLM / BigModel Provider 客户端实现。"""

    name = "glm"
    config = GLM_CONFIG
    api_key_field = "glm_api_key"
    base_url_field = "glm_base_url"

    def __init__(self, cfg=settings):
        super().__init__(cfg)
