"""把各 agent 的 token 用量字段归一化为 TokenUsage。

- claude: usage.input_tokens + cache_read_input_tokens + cache_creation_input_tokens。
- gemini: stats.models.<model>.tokens 下的 input 与 candidates（或 output）按模型累加。
- codex: usage.input_tokens / output_tokens（旧版本为 total_*）。

任何字段缺失或格式不对都按 0 处理，本模块不抛异常。
"""

from typing import Any, Mapping, Optional

from debait_core.domain.models import TokenUsage


def _as_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        n = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(n, 0)


def _first_count(data: Mapping[str, Any], *keys: str) -> int:
    for key in keys:
        n = _as_count(data.get(key))
        if n:
            return n
    return 0


def _claude_usage(raw: Mapping[str, Any]) -> TokenUsage:
    return TokenUsage(
        input=(
            _as_count(raw.get("input_tokens"))
            + _as_count(raw.get("cache_read_input_tokens"))
            + _as_count(raw.get("cache_creation_input_tokens"))
        ),
        output=_as_count(raw.get("output_tokens")),
    )


def _gemini_usage(raw: Mapping[str, Any]) -> TokenUsage:
    models = raw.get("models")
    if not isinstance(models, Mapping):
        return TokenUsage()
    usage = TokenUsage()
    for model_data in models.values():
        if not isinstance(model_data, Mapping):
            continue
        tokens = model_data.get("tokens")
        if not isinstance(tokens, Mapping):
            continue
        usage.input += _as_count(tokens.get("input"))
        usage.output += _first_count(tokens, "candidates", "output")
    return usage


def _codex_usage(raw: Mapping[str, Any]) -> TokenUsage:
    return TokenUsage(
        input=_first_count(raw, "input_tokens", "total_input_tokens"),
        output=_first_count(raw, "output_tokens", "total_output_tokens"),
    )


_EXTRACTORS = {
    "claude": _claude_usage,
    "gemini": _gemini_usage,
    "codex": _codex_usage,
}


def extract_token_usage(provider: str, raw_usage: Optional[Mapping[str, Any]]) -> TokenUsage:
    """根据 agent 类型归一化用量。"""

    if not isinstance(raw_usage, Mapping) or not raw_usage:
        return TokenUsage()
    # 已经是 {input, output} 形状的直接使用
    if "input" in raw_usage or "output" in raw_usage:
        return TokenUsage(input=_as_count(raw_usage.get("input")), output=_as_count(raw_usage.get("output")))
    extractor = _EXTRACTORS.get(provider)
    if extractor is None:
        return TokenUsage()
    return extractor(raw_usage)
