import pytest

from assistant_core.agents.title_agent import (
    EMPTY_CONVERSATION_TITLE,
    FALLBACK_TITLE,
    MAX_TITLE_LENGTH,
    TitleAgent,
    clean_title,
    select_title_source,
)
from assistant_core.domain.conversation import Conversation
from assistant_core.domain.exceptions import NetworkError
from assistant_core.domain.models import ChatChoice, ChatMessage, ChatResult


class TitleProvider:
    name = "fake"

    def __init__(self, reply=None, error=None, no_choices=False):
        self._reply = reply
        self._error = error
        self._no_choices = no_choices
        self.requests = []

    async def chat(self, req):
        self.requests.append(req)
        if self._error is not None:
            raise self._error
        if self._no_choices:
            return ChatResult(provider="fake", model=req.model, choices=[])
        msg = ChatMessage(role="assistant", content=self._reply)
        return ChatResult(provider="fake", model=req.model, choices=[ChatChoice(index=0, message=msg)])


def _conv(*pairs):
    conv = Conversation()
    for role, content in pairs:
        conv.append(role, content)
    return conv


@pytest.mark.asyncio
async def test_empty_conversation_does_not_call_backend():
    provider = TitleProvider(reply="unused")
    title = await TitleAgent(provider, system_prompt="T").title(Conversation())
    assert title == EMPTY_CONVERSATION_TITLE
    assert provider.requests == []


@pytest.mark.asyncio
async def test_uses_first_non_blank_user_message():
    provider = TitleProvider(reply="Weather in Barcelona")
    conv = _conv(("user", "   "), ("assistant", "hello"), ("user", "What is the weather in Barcelona?"))
    title = await TitleAgent(provider, system_prompt="T").title(conv)
    assert title == "Weather in Barcelona"
    req = provider.requests[0]
    assert req.model == "title"
    assert [m.role for m in req.messages] == ["system", "user"]
    assert req.messages[0].content == "T"
    assert req.messages[1].content == "What is the weather in Barcelona?"


def test_select_title_source_falls_back_to_first_message():
    conv = _conv(("assistant", "greeting"), ("user", "  "))
    assert select_title_source(conv) == "greeting"


@pytest.mark.asyncio
async def test_title_is_cleaned():
    provider = TitleProvider(reply='"Trip planning\nfor Japan"\n')
    title = await TitleAgent(provider, system_prompt="T").title(_conv(("user", "plan my trip")))
    assert title == "Trip planning for Japan"
    assert "\n" not in title


def test_clean_title_truncates():
    raw = "- " + "word " * 40
    title = clean_title(raw)
    assert len(title) <= MAX_TITLE_LENGTH
    assert not title.endswith(" ")
    assert not title.startswith("-")


def test_clean_title_strips_quotes_and_dashes():
    assert clean_title("'Holiday dates'") == "Holiday dates"
    assert clean_title("--- FX rates ---") == "FX rates"
    assert clean_title("a\r\nb") == "a b"


@pytest.mark.asyncio
async def test_backend_failure_falls_back():
    provider = TitleProvider(error=NetworkError(code="NETWORK_ERROR", message="down"))
    title = await TitleAgent(provider, system_prompt="T").title(_conv(("user", "hi")))
    assert title == FALLBACK_TITLE


@pytest.mark.asyncio
async def test_zero_choices_falls_back():
    provider = TitleProvider(no_choices=True)
    title = await TitleAgent(provider, system_prompt="T").title(_conv(("user", "hi")))
    assert title == FALLBACK_TITLE


@pytest.mark.asyncio
async def test_blank_model_output_falls_back():
    provider = TitleProvider(reply='  ""  ')
    title = await TitleAgent(provider, system_prompt="T").title(_conv(("user", "hi")))
    assert title == FALLBACK_TITLE
