import json

import pytest

from conftest import FakeProcess
from debait_core.domain.exceptions import ProcessFailureError
from debait_core.domain.models import InvokeOptions
from debait_core.providers.claude_client import ClaudeClient


class SettingsStub:
    claude_bin = "/usr/local/bin/claude"
    process_timeout = 5.0


@pytest.mark.asyncio
async def test_claude_first_turn_args_and_parse(fake_cli):
    stdout = json.dumps({
        "type": "result",
        "result": "Hello there",
        "session_id": "s1",
        "duration_ms": 812,
        "total_cost_usd": 0.0123,
        "usage": {"input_tokens": 10, "cache_read_input_tokens": 2, "output_tokens": 7},
    }).encode()
    recorder = fake_cli(FakeProcess(stdout=stdout))

    client = ClaudeClient(SettingsStub())
    resp = await client.invoke("Hi", InvokeOptions(system_prompt="Be brief"))

    assert recorder.calls[0]["binary"] == "/usr/local/bin/claude"
    assert recorder.last_args == ["-p", "Hi", "--output-format", "json", "--system-prompt", "Be brief"]
    assert resp.result_text == "Hello there"
    assert resp.continuation_token == "s1"
    assert resp.duration_ms == 812
    assert resp.cost_usd == pytest.approx(0.0123)
    assert resp.raw_usage["input_tokens"] == 10


@pytest.mark.asyncio
async def test_claude_resume_and_model(fake_cli):
    recorder = fake_cli(FakeProcess(stdout=b'{"result": "ok", "session_id": "s1"}'))
    client = ClaudeClient(SettingsStub())
    await client.invoke("Next", InvokeOptions(continuation_token="s1", model="sonnet"))
    assert recorder.last_args == ["-p", "Next", "--output-format", "json", "--resume", "s1", "--model", "sonnet"]


@pytest.mark.asyncio
async def test_claude_unparseable_output_degrades_to_text(fake_cli):
    fake_cli(FakeProcess(stdout=b"  plain answer\n"))
    resp = await ClaudeClient(SettingsStub()).invoke("Hi")
    assert resp.result_text == "plain answer"
    assert resp.continuation_token is None
    assert resp.raw_usage is None
    assert resp.duration_ms is not None


@pytest.mark.asyncio
async def test_claude_nonzero_exit_fails_even_with_stdout(fake_cli):
    fake_cli(FakeProcess(stdout=b'{"result": "partial"}', stderr=b"auth expired", returncode=1))
    with pytest.raises(ProcessFailureError) as exc:
        await ClaudeClient(SettingsStub()).invoke("Hi")
    assert exc.value.message == "auth expired"
    assert exc.value.extra["exit_code"] == 1
