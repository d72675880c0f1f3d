"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (openai_client)。
"""

from typing import Optional

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ValidationError
from assistant_core.providers.base import ProviderClient
from assistant_core.providers.openai_client import OpenAIClient
from assistant_core.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None, cfg: Optional[Settings] = None) -> ProviderClient:
    """根据名称创建 Provider 实例。

    Args:
        name: Provider 名称，默认取配置中的 default_provider
        cfg: 传给客户端的配置对象，默认使用全局 settings
    """

    cfg = cfg if cfg is not None else settings
    provider_name = name or getattr(cfg, "default_provider", "openai")
    try:
        provider_cfg = get_provider_config(provider_name)
    except KeyError as e:
        raise ValidationError(code="UNKNOWN_PROVIDER", message=str(e))
    if provider_cfg.name == "openai":
        return OpenAIClient(cfg)
    raise ValidationError(code="UNKNOWN_PROVIDER", message=f"No client for provider {provider_cfg.name!r}")
