"""会话状态：conversation_id -> 续接 token、轮次与绑定的 agent 类型。"""

from debait_core.sessions.registry import SessionRegistry

__all__ = ["SessionRegistry"]
