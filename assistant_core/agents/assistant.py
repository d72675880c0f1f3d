"""助手门面：把标题生成与回复引擎绑定到同一个 Provider 和工具注册表。

协调器只依赖 ConversationAssistant 协议（title / reply 两个协程），
测试中可以用任意实现了这两个方法的假对象替换。
"""

from typing import Optional, Protocol

from assistant_core.agents.reply_agent import DEFAULT_MAX_TOOL_ROUNDS, AgentConfig, ReplyAgent
from assistant_core.agents.title_agent import TitleAgent
from assistant_core.config.settings import Settings, settings
from assistant_core.domain.conversation import Conversation
from assistant_core.providers import create_provider
from assistant_core.providers.base import ProviderClient
from assistant_core.tools.registry import ToolRegistry, build_default_registry


class ConversationAssistant(Protocol):
    async def title(self, conversation: Conversation) -> str:
        ...

    async def reply(self, conversation: Conversation) -> str:
        ...


class Assistant:
    def __init__(
        self,
        provider_client: ProviderClient,
        registry: ToolRegistry,
        max_tool_rounds: Optional[int] = None,
    ):
        """初始化助手。

        Args:
            provider_client: Provider 客户端实例
            registry: 启动时构建好的工具注册表（只读）
            max_tool_rounds: 单次回复的工具轮数上限，默认 DEFAULT_MAX_TOOL_ROUNDS
        """
        rounds = max_tool_rounds or DEFAULT_MAX_TOOL_ROUNDS
        self._title_agent = TitleAgent(provider_client)
        self._reply_agent = ReplyAgent(
            provider_client,
            registry,
            AgentConfig(provider=provider_client.name, max_tool_rounds=rounds),
        )

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "Assistant":
        return cls(
            provider_client=create_provider(cfg.default_provider, cfg),
            registry=build_default_registry(cfg),
            max_tool_rounds=cfg.max_tool_rounds,
        )

    async def title(self, conversation: Conversation) -> str:
        return await self._title_agent.title(conversation)

    async def reply(self, conversation: Conversation) -> str:
        return await self._reply_agent.reply(conversation)
