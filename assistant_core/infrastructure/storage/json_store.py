import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

from assistant_core.config.settings import settings
from assistant_core.domain.conversation import Conversation, ConversationStore, Message
from assistant_core.domain.exceptions import BusinessError, NotFoundError


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_dt(raw: str) -> datetime:
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


class JsonConversationStore(ConversationStore):
    """每个会话一个 JSON 文件；写入先落临时文件再原子替换。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._conv_root = self._root / "conversations"
        self._conv_root.mkdir(parents=True, exist_ok=True)

    def save_conversation(self, conversation: Conversation) -> Conversation:
        """持久化整个会话；id 为空时分配新 id。"""
        if not conversation.id:
            conversation.id = f"c-{uuid4().hex}"
        conversation.updated_at = datetime.now(timezone.utc)
        self._write(conversation)
        return conversation

    def get_conversation(self, conversation_id: str) -> Conversation:
        path = self._path(conversation_id)
        if not path.exists():
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=f"conversation {conversation_id} not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e), http_status=500)
        return self._to_conversation(data)

    def list_conversations(self) -> List[Conversation]:
        items: List[Conversation] = []
        for path in self._conv_root.glob("*.json"):
            try:
                items.append(self._to_conversation(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError):
                continue
        items.sort(key=lambda c: c.created_at, reverse=True)
        return items

    def delete_conversation(self, conversation_id: str) -> None:
        path = self._path(conversation_id)
        if not path.exists():
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=f"conversation {conversation_id} not found")
        try:
            path.unlink()
        except OSError as e:
            raise BusinessError(code="STORE_DELETE_ERROR", message=str(e), http_status=500)

    def _path(self, conversation_id: str) -> Path:
        # 只接受单段文件名，避免路径穿越
        if not conversation_id or Path(conversation_id).name != conversation_id or conversation_id.startswith("."):
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=f"conversation {conversation_id} not found")
        return self._conv_root / f"{conversation_id}.json"

    def _write(self, conv: Conversation) -> None:
        path = self._path(conv.id)
        tmp_path = self._conv_root / f"{conv.id}.{uuid4().hex}.json.tmp"
        obj = {
            "id": conv.id,
            "title": conv.title,
            "created_at": _iso(conv.created_at),
            "updated_at": _iso(conv.updated_at),
            "messages": [
                {
                    "role": m.role,
                    "content": m.content,
                    "tool_call_id": m.tool_call_id,
                    "created_at": _iso(m.created_at),
                }
                for m in conv.messages
            ],
        }
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), http_status=500)

    @staticmethod
    def _to_conversation(data: Dict[str, Any]) -> Conversation:
        return Conversation(
            id=data["id"],
            title=data.get("title") or "",
            created_at=_parse_dt(data["created_at"]),
            updated_at=_parse_dt(data["updated_at"]),
            messages=[
                Message(
                    role=m["role"],
                    content=m.get("content") or "",
                    tool_call_id=m.get("tool_call_id"),
                    created_at=_parse_dt(m["created_at"]),
                )
                for m in data.get("messages") or []
            ],
        )
