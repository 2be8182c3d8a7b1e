"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (glm_client、kimi_client)。
- 提供带会话记忆的句柄 (session)。
"""

from typing import Optional

from scanner_core.config.settings import settings
from scanner_core.providers.base import ProviderClient
from scanner_core.providers.glm_client import GlmClient
from scanner_core.providers.kimi_client import KimiClient
from scanner_core.providers.session import ModelSession


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "glm")).lower()
    if provider_name == "kimi":
        return KimiClient(settings)
    return GlmClient(settings)


__all__ = ["ProviderClient", "GlmClient", "KimiClient", "ModelSession", "create_provider"]
