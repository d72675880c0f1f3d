from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Protocol

from .models import Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Message:
    role: Role
    content: str
    tool_call_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Conversation:
    """会话：有序消息历史 + 标题。

    messages 只允许在末尾追加，不会被重排；id 为空表示尚未持久化，
    由存储层在第一次保存时分配。
    """

    id: str = ""
    title: str = ""
    messages: List[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def append(self, role: Role, content: str, tool_call_id: Optional[str] = None) -> Message:
        msg = Message(role=role, content=content, tool_call_id=tool_call_id)
        self.messages.append(msg)
        return msg


class ConversationStore(Protocol):
    def save_conversation(self, conversation: Conversation) -> Conversation:
        ...

    def get_conversation(self, conversation_id: str) -> Conversation:
        ...

    def list_conversations(self) -> List[Conversation]:
        ...

    def delete_conversation(self, conversation_id: str) -> None:
        ...
