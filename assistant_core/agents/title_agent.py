"""会话标题生成。

标题只是展示用途，因此本模块对调用方永不抛出普通异常：
空会话直接返回固定标题（不访问网络），模型调用失败或返回空结果时
返回 FALLBACK_TITLE。
"""

from typing import Optional

from assistant_core.domain.conversation import Conversation
from assistant_core.domain.models import ChatMessage, ChatRequest
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.prompts import load_system_prompt
from assistant_core.providers.base import ProviderClient

EMPTY_CONVERSATION_TITLE = "An empty conversation"
FALLBACK_TITLE = "New conversation"
MAX_TITLE_LENGTH = 80
_STRIP_CHARS = " \t\r\n-\"'"


def select_title_source(conversation: Conversation) -> str:
    """第一条非空白的用户消息；没有时退回第一条消息的内容。"""

    for m in conversation.messages:
        if m.role == "user" and m.content.strip():
            return m.content
    return conversation.messages[0].content


def clean_title(raw: str) -> str:
    title = raw.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
    title = title.strip(_STRIP_CHARS)
    if len(title) > MAX_TITLE_LENGTH:
        # 截断后可能留下尾部空格或引号
        title = title[:MAX_TITLE_LENGTH].strip(_STRIP_CHARS)
    return title


class TitleAgent:
    def __init__(
        self,
        provider_client: ProviderClient,
        model: str = "title",
        system_prompt: Optional[str] = None,
    ):
        self._provider_client = provider_client
        self._model = model
        self._system_prompt = system_prompt if system_prompt is not None else load_system_prompt("title")

    async def title(self, conversation: Conversation) -> str:
        if not conversation.messages:
            return EMPTY_CONVERSATION_TITLE
        logger.info(
            "Generating title for conversation",
            extra={"extra": {"conversation_id": conversation.id}},
        )

        req = ChatRequest(
            provider=self._provider_client.name,
            model=self._model,
            messages=[
                ChatMessage(role="system", content=self._system_prompt),
                ChatMessage(role="user", content=select_title_source(conversation)),
            ],
        )
        try:
            result = await self._provider_client.chat(req)
        except Exception as e:
            logger.warning(
                "Title generation failed",
                extra={"extra": {"conversation_id": conversation.id, "error": str(e)}},
            )
            return FALLBACK_TITLE
        if not result.choices:
            logger.warning("Title generation returned no choices", extra={"extra": {"conversation_id": conversation.id}})
            return FALLBACK_TITLE

        title = clean_title(result.choices[0].message.content or "")
        if not title:
            return FALLBACK_TITLE
        logger.info("Title generated", extra={"extra": {"conversation_id": conversation.id, "title": title}})
        return title
