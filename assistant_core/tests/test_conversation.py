from assistant_core.domain.conversation import Conversation
from assistant_core.domain.models import ChatMessage
from assistant_core.prompts import load_system_prompt


def test_models_exist():
    cm = ChatMessage(role="user", content="hi")
    assert cm.role == "user"
    assert cm.tool_calls is None
    conv = Conversation()
    assert conv.id == ""
    msg = conv.append("tool", "42", tool_call_id="call_1")
    assert conv.messages == [msg]
    assert msg.tool_call_id == "call_1"


def test_prompts_load():
    assert load_system_prompt("reply")
    assert "title" in load_system_prompt("title").lower()
