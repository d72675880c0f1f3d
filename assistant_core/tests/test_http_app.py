from fastapi.testclient import TestClient

from assistant_core.api.http_app import GREETING, create_app
from assistant_core.api.service import ChatService
from assistant_core.infrastructure.storage.json_store import JsonConversationStore


class FakeAssistant:
    async def title(self, conversation):
        return "Weather in Bangkok"

    async def reply(self, conversation):
        return "Sunny."


def _client(tmp_path):
    service = ChatService(JsonConversationStore(root=tmp_path), FakeAssistant())
    return TestClient(create_app(service))


def test_root_greeting(tmp_path):
    resp = _client(tmp_path).get("/")
    assert resp.status_code == 200
    assert resp.text == GREETING


def test_start_describe_continue(tmp_path):
    client = _client(tmp_path)
    resp = client.post("/conversations", json={"message": "What's the weather in Bangkok?"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Weather in Bangkok"
    assert body["reply"] == "Sunny."
    cid = body["conversation_id"]

    resp = client.post(f"/conversations/{cid}/messages", json={"message": "Tomorrow?"})
    assert resp.status_code == 200
    assert resp.json() == {"reply": "Sunny."}

    resp = client.get(f"/conversations/{cid}")
    assert resp.status_code == 200
    assert len(resp.json()["messages"]) == 4

    resp = client.get("/conversations")
    assert [c["id"] for c in resp.json()] == [cid]


def test_blank_message_is_400(tmp_path):
    resp = _client(tmp_path).post("/conversations", json={"message": "  "})
    assert resp.status_code == 400
    assert resp.json()["code"] == "EMPTY_MESSAGE"


def test_unknown_conversation_is_404(tmp_path):
    resp = _client(tmp_path).get("/conversations/c-missing")
    assert resp.status_code == 404
    assert resp.json()["code"] == "CONVERSATION_NOT_FOUND"
