"""对外 API 服务模块。

提供会话级的协程接口供 HTTP 层或其他上层应用调用。
"""

import asyncio
from typing import Any, Dict, List, Optional

from assistant_core.agents.assistant import Assistant, ConversationAssistant
from assistant_core.agents.coordinator import ConversationCoordinator
from assistant_core.config.settings import settings
from assistant_core.domain.conversation import Conversation, ConversationStore
from assistant_core.domain.exceptions import ValidationError
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.infrastructure.storage.json_store import JsonConversationStore


def _require_message(message: Optional[str]) -> str:
    if message is None or not message.strip():
        raise ValidationError(code="EMPTY_MESSAGE", message="message must not be empty")
    return message


class ChatService:
    def __init__(self, store: ConversationStore, assistant: ConversationAssistant):
        self._store = store
        self._coordinator = ConversationCoordinator(assistant, store)

    async def start_conversation(self, message: str) -> Dict[str, Any]:
        """用第一条用户消息开启新会话。

        Args:
            message: 用户输入，空白输入直接拒绝，不会创建会话

        Returns:
            包含 conversation_id、title、reply 的字典

        Raises:
            ValidationError: 输入为空
            InternalError: 回复生成失败
        """
        text = _require_message(message)
        conversation = Conversation()
        conversation.append("user", text)
        try:
            result = await self._coordinator.run(conversation)
        except Exception as e:
            logger.error(f"Start conversation failed: {e}", extra={"extra": {
                "error": str(e),
                "error_code": getattr(e, "code", None),
            }})
            raise
        return {
            "conversation_id": result.conversation.id,
            "title": result.title,
            "reply": result.reply,
        }

    async def continue_conversation(self, conversation_id: str, message: str) -> Dict[str, Any]:
        """向已有会话追加一条用户消息并生成回复，标题不变。"""
        text = _require_message(message)
        conversation = await asyncio.to_thread(self._store.get_conversation, conversation_id)
        conversation.append("user", text)
        try:
            result = await self._coordinator.continue_turn(conversation)
        except Exception as e:
            logger.error(f"Continue conversation failed: {e}", extra={"extra": {
                "conversation_id": conversation_id,
                "error": str(e),
                "error_code": getattr(e, "code", None),
            }})
            raise
        return {"reply": result.reply}

    async def describe_conversation(self, conversation_id: str) -> Dict[str, Any]:
        conversation = await asyncio.to_thread(self._store.get_conversation, conversation_id)
        return {
            "id": conversation.id,
            "title": conversation.title,
            "created_at": conversation.created_at.isoformat(),
            "updated_at": conversation.updated_at.isoformat(),
            "messages": [
                {
                    "role": m.role,
                    "content": m.content,
                    "created_at": m.created_at.isoformat(),
                }
                for m in conversation.messages
            ],
        }

    async def list_conversations(self) -> List[Dict[str, Any]]:
        convs = await asyncio.to_thread(self._store.list_conversations)
        return [
            {
                "id": c.id,
                "title": c.title,
                "created_at": c.created_at.isoformat(),
                "updated_at": c.updated_at.isoformat(),
            }
            for c in convs
        ]


_service: Optional[ChatService] = None


def get_default_service() -> ChatService:
    """获取默认的会话服务实例（单例）。"""
    global _service
    if _service is None:
        _service = ChatService(
            store=JsonConversationStore(root=settings.storage_root),
            assistant=Assistant.from_settings(settings),
        )
    return _service
