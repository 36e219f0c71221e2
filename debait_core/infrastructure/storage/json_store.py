import json
import os
from pathlib import Path
from typing import Dict, Mapping
from uuid import uuid4

from debait_core.config.settings import settings
from debait_core.domain.conversation import SessionStore, Conversation
from debait_core.domain.exceptions import BusinessError


class JsonSessionStore(SessionStore):
    """把全部会话状态保存为单个 JSON 文件：{conversation_id: {...}}。"""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or settings.sessions_file).resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Conversation]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            raise BusinessError(code="STORE_READ_ERROR", message=f"{self._path} is not a JSON object")
        items: Dict[str, Conversation] = {}
        for cid, raw in data.items():
            if not isinstance(raw, dict):
                continue
            try:
                items[cid] = Conversation.from_dict(cid, raw)
            except (TypeError, ValueError):
                continue
        return items

    def save(self, conversations: Mapping[str, Conversation]) -> None:
        obj = {cid: conv.to_dict() for cid, conv in conversations.items()}
        tmp_path = self._path.with_name(f"{self._path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))
