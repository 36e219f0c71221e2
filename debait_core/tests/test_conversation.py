from datetime import datetime, timezone

from debait_core.domain.conversation import Conversation
from debait_core.domain.models import TokenUsage, TurnResult


def test_conversation_dict_roundtrip():
    now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    conv = Conversation(id="c1", session_id="s1", turns=2, created_at=now, provider="codex")
    data = conv.to_dict()
    assert data["created_at"].endswith("Z")
    assert "id" not in data
    restored = Conversation.from_dict("c1", data)
    assert restored == conv


def test_conversation_from_dict_defaults():
    conv = Conversation.from_dict("c2", {})
    assert conv.session_id is None
    assert conv.turns == 0
    assert conv.provider is None
    assert conv.created_at.tzinfo is not None


def test_turn_result_wire_shape():
    ask = TurnResult(result="hi", provider="claude", duration_ms=12, tokens=TokenUsage(3, 4), conversation_id="c1", turn=1)
    assert ask.to_dict() == {
        "result": "hi",
        "provider": "claude",
        "durationMs": 12,
        "tokens": {"input": 3, "output": 4},
        "aborted": False,
        "conversationId": "c1",
        "turn": 1,
    }
    discuss = TurnResult(result="x", provider="gemini", duration_ms=1, tokens=TokenUsage())
    assert "conversationId" not in discuss.to_dict()
    assert "turn" not in discuss.to_dict()


def test_conversation_from_legacy_keys():
    conv = Conversation.from_dict(
        "c3",
        {"sessionId": "s-old", "turns": 4, "created": "2025-12-31T23:59:59.000Z", "provider": "gemini"},
    )
    assert conv.session_id == "s-old"
    assert conv.turns == 4
    assert conv.created_at == datetime(2025, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    # 重新保存时使用当前字段名
    assert conv.to_dict()["session_id"] == "s-old"
