"""CLI 输出解析。

两种格式：

1. 单个 JSON 文档（claude / gemini）：整段 stdout 必须是一个 JSON 对象。
2. 逐行 JSON 事件（codex --json）：每行一个事件，坏行直接跳过，
   只关心少数几种事件并折叠成一个结果。

单个 JSON 文档解析失败时抛 OutputParseError，由适配器降级为原始文本。
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


class OutputParseError(ValueError):
    """stdout 无法按预期格式解析。"""


def parse_json_document(stdout: str) -> Dict[str, Any]:
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise OutputParseError(f"invalid JSON document: {e}") from e
    if not isinstance(data, dict):
        raise OutputParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


@dataclass
class JsonlEvents:
    """逐行事件折叠后的结果。"""

    session_id: Optional[str] = None
    result: str = ""
    usage: Optional[Dict[str, Any]] = None
    aborted: bool = False
    events_seen: int = 0


def parse_jsonl_events(stdout: str) -> JsonlEvents:
    """折叠 codex 的 JSONL 事件流。

    - thread.started: thread_id 作为续接 token。
    - item.completed 且 item.type == "agent_message": 回答文本，后出现的覆盖先出现的。
    - turn.completed: usage。
    - turn.aborted: 仅标记 aborted。

    坏行直接跳过，从不抛异常；没有 agent_message 时 result 为空字符串。
    """

    parsed = JsonlEvents()
    for line in stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(event, dict):
            continue
        parsed.events_seen += 1
        kind = event.get("type")

        if kind == "thread.started" and event.get("thread_id"):
            parsed.session_id = event["thread_id"]
        elif kind == "item.completed":
            item = event.get("item")
            if isinstance(item, dict) and item.get("type") == "agent_message":
                parsed.result = item.get("text") or ""
        elif kind == "turn.completed" and isinstance(event.get("usage"), dict):
            parsed.usage = event["usage"]
        elif kind == "turn.aborted":
            parsed.aborted = True

    return parsed
