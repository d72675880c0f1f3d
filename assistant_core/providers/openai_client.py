"""OpenAI 兼容 Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 chat/completions 请求（含 function calling 的 tools 声明）。
3. 通过 httpx.AsyncClient 调用接口并处理网络/API 异常。
4. 将响应 JSON 解析为统一的 ChatResult / ChatMessage 结构（含工具调用）。

工具调用的 arguments 以原始 JSON 文本保留在 ToolCall 中，
解析交给回复循环，这样参数错误可以作为观察结果反馈给模型。
"""

import json
from typing import Any, Dict, List

import httpx

from assistant_core.config.settings import settings
from assistant_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from assistant_core.domain.models import (
    ChatChoice,
    ChatMessage,
    ChatRequest,
    ChatResult,
    ChatUsage,
)
from assistant_core.providers.registry import OPENAI_CONFIG, ModelConfig
from assistant_core.tools.definitions import ToolCall, ToolDef


class OpenAIClient:
    """OpenAI chat/completions 客户端实现。"""

    name = "openai"

    def __init__(self, cfg=settings):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = cfg

    async def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 读取模型配置（logical model -> provider model）。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并把网络错误/限流/服务端错误转换为业务异常。
        4. 解析为 ChatResult；choices 可能为空，由调用方决定如何处理。
        """

        if not getattr(self._settings, "openai_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="OPENAI_API_KEY not set")
        try:
            model_cfg = OPENAI_CONFIG.models[req.model]
        except KeyError:
            raise ValidationError(code="UNKNOWN_MODEL", message=f"unknown logical model {req.model!r}")
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "openai_base_url", None) or OPENAI_CONFIG.base_url
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{base}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._settings.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="OpenAI rate limit", http_status=429, provider=self.name)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code, provider=self.name)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="BAD_RESPONSE", message=f"invalid JSON from provider: {e}", http_status=502)
        return self._parse_response(data, req)

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": [self._message_to_payload(m) for m in req.messages],
        }
        temperature = req.temperature if req.temperature is not None else model_cfg.default_temperature
        if temperature is not None:
            payload["temperature"] = temperature
        max_tokens = req.max_tokens or model_cfg.max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: Dict[str, Any], req: ChatRequest) -> ChatResult:
        choices: List[ChatChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            msg = ch.get("message") or {}
            choices.append(
                ChatChoice(
                    index=ch.get("index", i),
                    message=self._build_chat_message(msg),
                    finish_reason=ch.get("finish_reason"),
                )
            )
        usage = None
        usage_raw = data.get("usage") or {}
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage, raw=data)

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }

    def _build_chat_message(self, payload: Dict[str, Any]) -> ChatMessage:
        """将单条厂商 message 转换为 ChatMessage，并解析 tool_calls。"""

        tool_calls: List[ToolCall] = []
        for idx, call in enumerate(payload.get("tool_calls") or []):
            func = call.get("function") or {}
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"tool_call_{idx}",
                    name=func.get("name") or call.get("name") or "",
                    arguments=self._raw_arguments(func.get("arguments")),
                )
            )

        # 兼容旧版 function_call 字段
        function_call = payload.get("function_call")
        if function_call:
            tool_calls.append(
                ToolCall(
                    id=function_call.get("id") or "function_call",
                    name=function_call.get("name") or "",
                    arguments=self._raw_arguments(function_call.get("arguments")),
                )
            )
        return ChatMessage(
            role=payload.get("role") or "assistant",
            content=payload.get("content") or "",
            tool_calls=tool_calls or None,
            tool_call_id=payload.get("tool_call_id"),
        )

    @staticmethod
    def _raw_arguments(raw: Any) -> str:
        if raw is None:
            return ""
        if isinstance(raw, str):
            return raw
        return json.dumps(raw, ensure_ascii=False)

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role}
        # 带工具调用的 assistant 消息允许省略 content，其余角色必须携带
        if message.content or not message.tool_calls:
            payload["content"] = message.content
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload
