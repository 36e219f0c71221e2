from debait_core.providers.usage import extract_token_usage


def test_claude_usage_includes_cache_tokens():
    raw = {
        "input_tokens": 10,
        "cache_read_input_tokens": 100,
        "cache_creation_input_tokens": 5,
        "output_tokens": 42,
    }
    usage = extract_token_usage("claude", raw)
    assert usage.input == 115
    assert usage.output == 42


def test_gemini_usage_sums_over_models():
    raw = {
        "models": {
            "gemini-2.5-pro": {"tokens": {"input": 30, "candidates": 7}},
            "gemini-2.5-flash": {"tokens": {"input": 3, "output": 1}},
            "broken": "n/a",
        }
    }
    usage = extract_token_usage("gemini", raw)
    assert usage.input == 33
    assert usage.output == 8


def test_codex_usage_and_legacy_fields():
    assert extract_token_usage("codex", {"input_tokens": 5, "output_tokens": 2}).to_dict() == {"input": 5, "output": 2}
    legacy = extract_token_usage("codex", {"total_input_tokens": 8, "total_output_tokens": 3})
    assert (legacy.input, legacy.output) == (8, 3)


def test_missing_or_malformed_usage_is_zero():
    assert extract_token_usage("claude", None).to_dict() == {"input": 0, "output": 0}
    assert extract_token_usage("gemini", {"models": []}).to_dict() == {"input": 0, "output": 0}
    bad = extract_token_usage("claude", {"input_tokens": "abc", "output_tokens": -4})
    assert (bad.input, bad.output) == (0, 0)


def test_flat_usage_is_used_directly():
    usage = extract_token_usage("gemini", {"input": 4, "output": 6})
    assert (usage.input, usage.output) == (4, 6)
