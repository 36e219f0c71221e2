from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Mapping, Protocol


@dataclass
class Conversation:
    id: str
    session_id: Optional[str]
    turns: int
    created_at: datetime
    provider: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "turns": self.turns,
            "created_at": self.created_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, conversation_id: str, data: Mapping[str, Any]) -> "Conversation":
        # 兼容旧格式的 sessionId / created 字段
        created_raw = data.get("created_at") or data.get("created")
        if created_raw:
            created_at = datetime.fromisoformat(str(created_raw).replace("Z", "+00:00"))
        else:
            created_at = datetime.now(timezone.utc)
        return cls(
            id=conversation_id,
            session_id=data.get("session_id") or data.get("sessionId"),
            turns=int(data.get("turns", 0)),
            created_at=created_at,
            provider=data.get("provider"),
        )


class SessionStore(Protocol):
    def load(self) -> Dict[str, Conversation]:
        ...

    def save(self, conversations: Mapping[str, Conversation]) -> None:
        ...
