"""标题与回复的并发协调器。

两条分支（title / reply）基于同一个会话快照并发执行，二者都只读会话；
全部完成后由协调器统一写回标题、追加 assistant 消息，并交给存储层做
一次持久化。总耗时取决于较慢的一条分支，而不是两者之和。

失败策略：
- 标题失败或为空 -> UNTITLED_TITLE，不影响结果；
- 回复失败 -> InternalError（校验错误原样抛出），不做任何持久化。
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, NoReturn
from uuid import uuid4

from assistant_core.agents.assistant import ConversationAssistant
from assistant_core.domain.conversation import Conversation, ConversationStore
from assistant_core.domain.exceptions import InternalError, ValidationError
from assistant_core.infrastructure.logging.logger import logger

UNTITLED_TITLE = "Untitled conversation"


@dataclass
class CoordinatedResult:
    conversation: Conversation
    title: str
    reply: str


class ConversationCoordinator:
    def __init__(self, assistant: ConversationAssistant, store: ConversationStore):
        self._assistant = assistant
        self._store = store

    async def run(self, conversation: Conversation) -> CoordinatedResult:
        """并发生成标题与回复，合并后持久化。"""

        start = time.monotonic()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "conversation_id": conversation.id}

        title_task = asyncio.ensure_future(self._assistant.title(conversation))
        reply_task = asyncio.ensure_future(self._assistant.reply(conversation))
        # 调用方被取消时 gather 会同时取消两条分支
        title_outcome, reply_outcome = await asyncio.gather(title_task, reply_task, return_exceptions=True)

        title = self._resolve_title(title_outcome, log_ctx)
        reply = self._resolve_reply(reply_outcome, log_ctx)

        conversation.title = title
        conversation.append("assistant", reply)
        saved = await asyncio.to_thread(self._store.save_conversation, conversation)

        self._log(
            logging.INFO,
            "Coordinated turn completed",
            log_ctx,
            conversation_id=saved.id,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )
        return CoordinatedResult(conversation=saved, title=title, reply=reply)

    async def continue_turn(self, conversation: Conversation) -> CoordinatedResult:
        """后续轮次只生成回复，标题保持不变。"""

        start = time.monotonic()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "conversation_id": conversation.id}
        try:
            reply = await self._assistant.reply(conversation)
        except Exception as e:
            self._raise_reply_failure(e, log_ctx)

        conversation.append("assistant", reply)
        saved = await asyncio.to_thread(self._store.save_conversation, conversation)
        self._log(
            logging.INFO,
            "Follow-up turn completed",
            log_ctx,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )
        return CoordinatedResult(conversation=saved, title=saved.title, reply=reply)

    def _resolve_title(self, outcome: Any, log_ctx: Dict[str, Any]) -> str:
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception) and not isinstance(outcome, asyncio.CancelledError):
                raise outcome
            self._log(logging.WARNING, "Title branch failed, using fallback", log_ctx, error=repr(outcome))
            return UNTITLED_TITLE
        if not isinstance(outcome, str) or not outcome.strip():
            return UNTITLED_TITLE
        return outcome

    def _resolve_reply(self, outcome: Any, log_ctx: Dict[str, Any]) -> str:
        if isinstance(outcome, BaseException):
            self._raise_reply_failure(outcome, log_ctx)
        return outcome

    def _raise_reply_failure(self, outcome: BaseException, log_ctx: Dict[str, Any]) -> NoReturn:
        if not isinstance(outcome, Exception):
            # CancelledError / KeyboardInterrupt 原样传播
            raise outcome
        if isinstance(outcome, ValidationError):
            raise outcome
        self._log(
            logging.ERROR,
            "Reply branch failed",
            log_ctx,
            error=str(outcome),
            error_type=type(outcome).__name__,
            error_code=getattr(outcome, "code", None),
        )
        raise InternalError(
            code="REPLY_FAILED",
            message="failed to generate reply",
            cause=getattr(outcome, "code", type(outcome).__name__),
        ) from outcome

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
