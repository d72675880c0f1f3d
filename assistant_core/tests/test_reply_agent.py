import json

import pytest

from assistant_core.agents.reply_agent import AgentConfig, ReplyAgent, parse_tool_arguments
from assistant_core.domain.conversation import Conversation
from assistant_core.domain.exceptions import (
    ApiError,
    ProviderProtocolError,
    ToolError,
    ToolRoundLimitError,
    ValidationError,
)
from assistant_core.domain.models import ChatChoice, ChatMessage, ChatResult
from assistant_core.tools.base import ToolCapability
from assistant_core.tools.definitions import ToolCall
from assistant_core.tools.registry import ToolRegistry


def _result(content="", tool_calls=None, choices=True):
    if not choices:
        return ChatResult(provider="fake", model="chat", choices=[])
    msg = ChatMessage(role="assistant", content=content, tool_calls=tool_calls)
    return ChatResult(provider="fake", model="chat", choices=[ChatChoice(index=0, message=msg)])


class ScriptedProvider:
    name = "fake"

    def __init__(self, *results):
        self._results = list(results)
        self.requests = []

    async def chat(self, req):
        self.requests.append(req)
        item = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(item, Exception):
            raise item
        return item


class EchoTool(ToolCapability):
    name = "echo"
    description = "Echo the text argument"

    def __init__(self):
        self.calls = []

    async def invoke(self, arguments):
        self.calls.append(dict(arguments))
        return f"echo:{arguments.get('text', '')}"


class BrokenTool(ToolCapability):
    name = "broken"
    description = "Always fails"

    async def invoke(self, arguments):
        raise ToolError(code="BOOM", message="upstream exploded")


def _conv(*texts):
    conv = Conversation(id="c1")
    for t in texts:
        conv.append("user", t)
    return conv


def _agent(provider, *tools, rounds=15):
    registry = ToolRegistry(tools or [EchoTool()]).freeze()
    return ReplyAgent(provider, registry, AgentConfig(provider="fake", max_tool_rounds=rounds), system_prompt="SYS")


def _tool_messages(req):
    return [m for m in req.messages if m.role == "tool"]


def test_parse_tool_arguments():
    assert parse_tool_arguments('{"a": 1}') == {"a": 1}
    with pytest.raises(ValueError):
        parse_tool_arguments("[1, 2]")
    with pytest.raises(ValueError):
        parse_tool_arguments("{not json")


@pytest.mark.asyncio
async def test_reply_returns_text_without_tools():
    provider = ScriptedProvider(_result("Hello there"))
    out = await _agent(provider).reply(_conv("hi"))
    assert out == "Hello there"
    assert len(provider.requests) == 1
    req = provider.requests[0]
    assert req.messages[0].role == "system"
    assert req.messages[0].content == "SYS"
    assert [(m.role, m.content) for m in req.messages[1:]] == [("user", "hi")]
    assert [t.name for t in req.tools] == ["echo"]


@pytest.mark.asyncio
async def test_history_roles_are_forwarded_in_order():
    conv = _conv("first")
    conv.append("assistant", "answer")
    conv.append("user", "second")
    provider = ScriptedProvider(_result("ok"))
    await _agent(provider).reply(conv)
    roles = [m.role for m in provider.requests[0].messages]
    assert roles == ["system", "user", "assistant", "user"]


@pytest.mark.asyncio
async def test_tool_results_follow_call_order_and_ids():
    echo = EchoTool()
    calls = [
        ToolCall(id="call_a", name="echo", arguments='{"text": "one"}'),
        ToolCall(id="call_b", name="echo", arguments='{"text": "two"}'),
    ]
    provider = ScriptedProvider(_result(tool_calls=calls), _result("done"))
    out = await _agent(provider, echo).reply(_conv("go"))

    assert out == "done"
    assert echo.calls == [{"text": "one"}, {"text": "two"}]
    second = provider.requests[1]
    assistant_msg = second.messages[-3]
    assert assistant_msg.role == "assistant"
    assert [c.id for c in assistant_msg.tool_calls] == ["call_a", "call_b"]
    tool_msgs = _tool_messages(second)
    assert [(m.tool_call_id, m.content) for m in tool_msgs] == [("call_a", "echo:one"), ("call_b", "echo:two")]


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_not_fatal():
    calls = [ToolCall(id="x1", name="launch_rocket", arguments="{}")]
    provider = ScriptedProvider(_result(tool_calls=calls), _result("sorry, cannot"))
    out = await _agent(provider).reply(_conv("launch"))
    assert out == "sorry, cannot"
    (msg,) = _tool_messages(provider.requests[1])
    assert msg.tool_call_id == "x1"
    assert msg.content == "unknown tool: launch_rocket"


@pytest.mark.asyncio
async def test_unparseable_arguments_become_tool_message():
    echo = EchoTool()
    calls = [ToolCall(id="x1", name="echo", arguments="{oops")]
    provider = ScriptedProvider(_result(tool_calls=calls), _result("fine"))
    await _agent(provider, echo).reply(_conv("hi"))
    (msg,) = _tool_messages(provider.requests[1])
    assert msg.content.startswith("failed to parse tool arguments:")
    assert echo.calls == []


@pytest.mark.asyncio
async def test_tool_failure_becomes_tool_message():
    calls = [ToolCall(id="b1", name="broken", arguments="{}")]
    provider = ScriptedProvider(_result(tool_calls=calls), _result("it failed"))
    out = await _agent(provider, BrokenTool()).reply(_conv("hi"))
    assert out == "it failed"
    (msg,) = _tool_messages(provider.requests[1])
    assert msg.tool_call_id == "b1"
    assert msg.content == "tool error: upstream exploded"


@pytest.mark.asyncio
async def test_tool_calls_take_precedence_over_text():
    calls = [ToolCall(id="e1", name="echo", arguments='{"text": "x"}')]
    provider = ScriptedProvider(_result("thinking out loud", tool_calls=calls), _result("final"))
    out = await _agent(provider).reply(_conv("hi"))
    assert out == "final"
    assert len(provider.requests) == 2


@pytest.mark.asyncio
async def test_round_limit_is_enforced():
    calls = [ToolCall(id="loop", name="echo", arguments='{"text": "again"}')]
    provider = ScriptedProvider(_result(tool_calls=calls))
    with pytest.raises(ToolRoundLimitError):
        await _agent(provider, rounds=3).reply(_conv("hi"))
    assert len(provider.requests) == 3


@pytest.mark.asyncio
async def test_zero_choices_is_protocol_error():
    provider = ScriptedProvider(_result(choices=False))
    with pytest.raises(ProviderProtocolError):
        await _agent(provider).reply(_conv("hi"))


@pytest.mark.asyncio
async def test_provider_failure_propagates():
    provider = ScriptedProvider(ApiError(code="API_ERROR", message="bad gateway", http_status=502))
    with pytest.raises(ApiError):
        await _agent(provider).reply(_conv("hi"))


@pytest.mark.asyncio
async def test_empty_conversation_rejected():
    provider = ScriptedProvider(_result("unused"))
    with pytest.raises(ValidationError):
        await _agent(provider).reply(Conversation())
    assert provider.requests == []


@pytest.mark.asyncio
async def test_empty_registry_sends_no_tools():
    provider = ScriptedProvider(_result("plain"))
    agent = ReplyAgent(provider, ToolRegistry().freeze(), AgentConfig(provider="fake"), system_prompt="SYS")
    assert await agent.reply(_conv("hi")) == "plain"
    assert provider.requests[0].tools is None


@pytest.mark.asyncio
async def test_tool_arguments_reach_tool_as_dict():
    echo = EchoTool()
    args = json.dumps({"text": "Bangkok", "extra": [1, 2]})
    provider = ScriptedProvider(_result(tool_calls=[ToolCall(id="t", name="echo", arguments=args)]), _result("ok"))
    await _agent(provider, echo).reply(_conv("hi"))
    assert echo.calls == [{"text": "Bangkok", "extra": [1, 2]}]
