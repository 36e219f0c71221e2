import pytest

from debait_core.providers.parsers import OutputParseError, parse_json_document, parse_jsonl_events


def test_parse_json_document_object():
    data = parse_json_document('{"result": "hi", "session_id": "s1"}')
    assert data["result"] == "hi"
    assert data["session_id"] == "s1"


def test_parse_json_document_rejects_non_object():
    with pytest.raises(OutputParseError):
        parse_json_document("[1, 2, 3]")
    with pytest.raises(OutputParseError):
        parse_json_document("not json")


def test_jsonl_folds_thread_messages_and_usage():
    stdout = "\n".join([
        '{"type":"thread.started","thread_id":"t1"}',
        '{"type":"item.completed","item":{"type":"agent_message","text":"A"}}',
        '{"type":"item.completed","item":{"type":"agent_message","text":"B"}}',
        '{"type":"turn.completed","usage":{"input_tokens":5,"output_tokens":2}}',
    ])
    parsed = parse_jsonl_events(stdout)
    assert parsed.session_id == "t1"
    assert parsed.result == "B"
    assert parsed.usage == {"input_tokens": 5, "output_tokens": 2}
    assert parsed.aborted is False
    assert parsed.events_seen == 4


def test_jsonl_skips_malformed_lines_and_other_items():
    stdout = "\n".join([
        "progress: 10%",
        '{"type":"thread.started","thread_id":"t9"}',
        "{broken",
        "",
        '{"type":"item.completed","item":{"type":"reasoning","text":"thinking"}}',
        '{"type":"item.completed","item":{"type":"agent_message","text":"answer"}}',
    ])
    parsed = parse_jsonl_events(stdout)
    assert parsed.session_id == "t9"
    assert parsed.result == "answer"
    assert parsed.usage is None


def test_jsonl_aborted_turn():
    parsed = parse_jsonl_events('{"type":"thread.started","thread_id":"t2"}\n{"type":"turn.aborted"}\n')
    assert parsed.aborted is True
    assert parsed.result == ""


def test_jsonl_without_events_is_empty_result():
    parsed = parse_jsonl_events("plain text\nno json here\n")
    assert parsed.result == ""
    assert parsed.session_id is None
    assert parsed.usage is None
    assert parsed.events_seen == 0
