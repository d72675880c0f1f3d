"""回复引擎：带工具调用的多轮对话循环。

流程（有界状态机）：
1. 构造消息列表 = [system prompt] + 会话历史。
2. 从工具注册表生成模型可见的函数声明。
3. 最多循环 max_tool_rounds 轮：
   - 调用 provider；失败直接向上抛出，本层不重试；
   - 没有返回任何 choice 视为协议错误；
   - 没有工具调用时，消息文本即最终回答；
   - 否则追加 assistant 消息，并按模型给出的顺序依次执行工具，
     每个结果（包括未知工具、参数解析失败、工具异常）都作为 tool 消息追加，
     不中断本轮。
4. 轮数耗尽仍未得到最终回答时抛出 ToolRoundLimitError。
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import uuid4

from assistant_core.domain.conversation import Conversation
from assistant_core.domain.exceptions import ProviderProtocolError, ToolRoundLimitError, ValidationError
from assistant_core.domain.models import ChatMessage, ChatRequest, ChatResult
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.prompts import load_system_prompt
from assistant_core.providers.base import ProviderClient
from assistant_core.tools.definitions import ToolCall
from assistant_core.tools.registry import ToolRegistry

DEFAULT_MAX_TOOL_ROUNDS = 15
RESULT_PREVIEW_CHARS = 200


@dataclass
class AgentConfig:
    provider: str
    model: str = "chat"
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    temperature: Optional[float] = None


def parse_tool_arguments(raw: str) -> Dict[str, Any]:
    """把模型给出的原始 arguments 文本解析为 dict，失败抛出 ValueError。"""

    args = json.loads(raw)
    if not isinstance(args, dict):
        raise ValueError(f"expected a JSON object, got {type(args).__name__}")
    return args


class ReplyAgent:
    def __init__(
        self,
        provider_client: ProviderClient,
        registry: ToolRegistry,
        config: Optional[AgentConfig] = None,
        system_prompt: Optional[str] = None,
    ):
        self._provider_client = provider_client
        self._registry = registry
        self._config = config or AgentConfig(provider=provider_client.name)
        self._system_prompt = system_prompt if system_prompt is not None else load_system_prompt("reply")

    async def reply(self, conversation: Conversation) -> str:
        """为会话生成最终回答文本。

        会话为空属于调用方错误（ValidationError）；provider 失败、协议错误
        与轮数耗尽都会向上抛出；单个工具的失败只会成为 tool 消息。
        """
        if not conversation.messages:
            raise ValidationError(code="EMPTY_CONVERSATION", message="conversation has no messages")

        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "conversation_id": conversation.id,
        }
        self._log(logging.INFO, "Generating reply for conversation", log_ctx)

        current_messages = self._initial_messages(conversation)
        tool_defs = self._registry.catalog()
        max_rounds = self._config.max_tool_rounds

        for round_num in range(1, max_rounds + 1):
            self._log(
                logging.INFO,
                "Tool round",
                log_ctx,
                round=round_num,
                max_rounds=max_rounds,
                message_count=len(current_messages),
            )
            req = ChatRequest(
                provider=self._config.provider,
                model=self._config.model,
                messages=list(current_messages),
                temperature=self._config.temperature,
                tools=tool_defs or None,
                tool_choice="auto",
            )
            result: ChatResult = await self._provider_client.chat(req)
            if not result.choices:
                raise ProviderProtocolError(
                    code="NO_CHOICES",
                    message=f"no choices returned by {self._provider_client.name}",
                    provider=self._provider_client.name,
                )

            assistant_msg = result.choices[0].message
            # 工具调用优先：同时携带的文本不作为本轮回答
            if not assistant_msg.tool_calls:
                self._log(logging.INFO, "Reply generated", log_ctx, tool_rounds=round_num)
                return assistant_msg.content

            self._log(logging.INFO, "Executing tool calls", log_ctx, call_count=len(assistant_msg.tool_calls))
            current_messages.append(
                ChatMessage(role="assistant", content=assistant_msg.content, tool_calls=list(assistant_msg.tool_calls))
            )
            # 顺序执行，tool 消息与调用顺序一致
            for tool_call in assistant_msg.tool_calls:
                current_messages.append(await self._dispatch(tool_call, log_ctx))

        self._log(logging.WARNING, "Reached max tool rounds", log_ctx, max_rounds=max_rounds)
        raise ToolRoundLimitError(
            code="TOO_MANY_TOOL_ROUNDS",
            message="too many tool calls, unable to generate reply",
            max_rounds=max_rounds,
        )

    def _initial_messages(self, conversation: Conversation) -> List[ChatMessage]:
        messages = [ChatMessage(role="system", content=self._system_prompt)]
        for m in conversation.messages:
            messages.append(ChatMessage(role=m.role, content=m.content, tool_call_id=m.tool_call_id))
        return messages

    async def _dispatch(self, tool_call: ToolCall, log_ctx: Dict[str, Any]) -> ChatMessage:
        self._log(
            logging.INFO,
            "Tool call received",
            log_ctx,
            tool_name=tool_call.name,
            tool_call_id=tool_call.id,
            tool_args=tool_call.arguments,
        )
        capability = self._registry.find(tool_call.name)
        if capability is None:
            self._log(logging.WARNING, "Unknown tool requested", log_ctx, tool_name=tool_call.name)
            return self._tool_message(tool_call, f"unknown tool: {tool_call.name}")

        try:
            args = parse_tool_arguments(tool_call.arguments)
        except ValueError as e:
            self._log(logging.WARNING, "Tool arguments unparseable", log_ctx, tool_call_id=tool_call.id, error=str(e))
            return self._tool_message(tool_call, f"failed to parse tool arguments: {e}")

        try:
            out = await capability.invoke(args)
        except Exception as e:
            error = str(e) or type(e).__name__
            self._log(
                logging.ERROR,
                "Tool execution failed",
                log_ctx,
                tool_call_id=tool_call.id,
                tool_name=tool_call.name,
                error=error,
            )
            return self._tool_message(tool_call, f"tool error: {error}")

        self._log(
            logging.INFO,
            "Tool execution finished",
            log_ctx,
            tool_call_id=tool_call.id,
            result_preview=(out or "")[:RESULT_PREVIEW_CHARS],
        )
        return self._tool_message(tool_call, out)

    @staticmethod
    def _tool_message(tool_call: ToolCall, content: str) -> ChatMessage:
        return ChatMessage(role="tool", content=content, tool_call_id=tool_call.id)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
