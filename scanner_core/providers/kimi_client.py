"""Kimi (Moonshot) Provider 适配器。"""

from scanner_core.config.settings import settings
from scanner_core.providers.chat_completions import ChatCompletionsClient
from scanner_core.providers.registry import KIMI_CONFIG


class KimiClient(ChatCompletionsClient):
    name = "kimi"
    config = KIMI_CONFIG
    api_key_field = "kimi_api_key"
    base_url_field = "kimi_base_url"

    def __init__(self, cfg=settings):
        super().__init__(cfg)
