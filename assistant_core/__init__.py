"""Assistant Core 顶层包。

该包提供带工具调用的对话助手核心实现，包括配置加载、领域模型、
Provider 适配、工具注册表、回复循环、标题生成、并发协调器与持久化存储。
"""

from assistant_core.agents.coordinator import ConversationCoordinator
from assistant_core.api.service import ChatService

__all__ = ["ChatService", "ConversationCoordinator"]
