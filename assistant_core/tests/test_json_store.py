import tempfile
from pathlib import Path

import pytest

from assistant_core.domain.conversation import Conversation
from assistant_core.domain.exceptions import NotFoundError
from assistant_core.infrastructure.storage.json_store import JsonConversationStore


def _conv(title="t"):
    conv = Conversation(title=title)
    conv.append("user", "What is the weather like in Bangkok?")
    conv.append("assistant", "Sunny, 33°C.")
    return conv


def test_json_store_save_assigns_id_and_round_trips():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        store = JsonConversationStore(root=root)
        conv = store.save_conversation(_conv("Weather in Bangkok"))
        assert conv.id.startswith("c-")
        assert (root / "conversations" / f"{conv.id}.json").exists()

        loaded = store.get_conversation(conv.id)
        assert loaded.title == "Weather in Bangkok"
        assert [(m.role, m.content) for m in loaded.messages] == [
            ("user", "What is the weather like in Bangkok?"),
            ("assistant", "Sunny, 33°C."),
        ]
        assert loaded.created_at == conv.created_at


def test_json_store_save_keeps_existing_id():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d))
        conv = store.save_conversation(_conv())
        first_id = conv.id
        conv.append("user", "and tomorrow?")
        store.save_conversation(conv)
        assert conv.id == first_id
        assert len(store.get_conversation(first_id).messages) == 3
        assert len(store.list_conversations()) == 1
        # no temp files left behind
        assert [p.suffix for p in (Path(d) / "conversations").iterdir()] == [".json"]


def test_json_store_list_and_delete():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d))
        a = store.save_conversation(_conv("a"))
        b = store.save_conversation(_conv("b"))
        assert {c.id for c in store.list_conversations()} == {a.id, b.id}
        store.delete_conversation(a.id)
        assert [c.id for c in store.list_conversations()] == [b.id]
        with pytest.raises(NotFoundError):
            store.get_conversation(a.id)


def test_json_store_unknown_and_invalid_ids():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d))
        with pytest.raises(NotFoundError):
            store.get_conversation("c-missing")
        with pytest.raises(NotFoundError):
            store.get_conversation("../secrets")
        with pytest.raises(NotFoundError):
            store.delete_conversation("c-missing")
