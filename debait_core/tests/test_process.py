import os
import signal
import sys
import time

import pytest

from conftest import FakeProcess
from debait_core.domain.exceptions import ProcessFailureError, ProcessTimeoutError, ProviderUnavailableError
from debait_core.providers.process import resolve_binary, run_cli


@pytest.mark.asyncio
async def test_run_cli_collects_stdout():
    out = await run_cli("py", sys.executable, ["-c", "print('hello')"], timeout=30)
    assert out.returncode == 0
    assert out.stdout.strip() == "hello"


@pytest.mark.asyncio
async def test_run_cli_stdin_is_closed():
    out = await run_cli("py", sys.executable, ["-c", "import sys; print(repr(sys.stdin.read()))"], timeout=30)
    assert out.stdout.strip() == "''"


@pytest.mark.asyncio
async def test_run_cli_nonzero_exit_uses_stderr():
    script = "import sys; sys.stdout.write('partial'); sys.stderr.write('boom'); sys.exit(3)"
    with pytest.raises(ProcessFailureError) as exc:
        await run_cli("py", sys.executable, ["-c", script], timeout=30)
    assert exc.value.message == "boom"
    assert exc.value.extra["exit_code"] == 3
    assert exc.value.http_status == 502


@pytest.mark.asyncio
async def test_run_cli_kills_on_timeout():
    start = time.monotonic()
    with pytest.raises(ProcessTimeoutError) as exc:
        await run_cli("sleeper", sys.executable, ["-c", "import time; time.sleep(60)"], timeout=0.5)
    assert time.monotonic() - start < 10
    assert exc.value.message == "sleeper timed out after 0.5s"
    assert exc.value.http_status == 504


@pytest.mark.asyncio
async def test_run_cli_timeout_kills_fake_process(fake_cli, monkeypatch):
    killed_groups = []
    monkeypatch.setattr("os.killpg", lambda pid, sig: killed_groups.append((pid, sig)), raising=False)
    proc = FakeProcess(hang=True)
    recorder = fake_cli(proc)
    with pytest.raises(ProcessTimeoutError):
        await run_cli("claude", "claude", ["-p", "x"], timeout=0.05)
    assert proc.killed is True
    assert recorder.calls[0]["kwargs"]["start_new_session"] is True
    if hasattr(os, "killpg"):
        assert killed_groups == [(4242, signal.SIGKILL)]


@pytest.mark.asyncio
@pytest.mark.skipif(not hasattr(os, "killpg"), reason="process groups are POSIX only")
async def test_run_cli_timeout_kills_children_holding_pipes():
    # 子进程继承 stdout，只杀父进程时管道不会关闭
    script = (
        "import subprocess, sys, time; "
        "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)']); "
        "time.sleep(60)"
    )
    start = time.monotonic()
    with pytest.raises(ProcessTimeoutError):
        await run_cli("agent", sys.executable, ["-c", script], timeout=0.5)
    assert time.monotonic() - start < 4


@pytest.mark.asyncio
async def test_run_cli_missing_binary():
    with pytest.raises(ProviderUnavailableError) as exc:
        await run_cli("claude", "/nonexistent/path/to/claude", ["-p", "x"], timeout=5)
    assert exc.value.code == "PROVIDER_UNAVAILABLE"


def test_resolve_binary(tmp_path):
    assert resolve_binary(sys.executable) == sys.executable
    assert resolve_binary(str(tmp_path / "nope")) is None
    assert resolve_binary("definitely-not-a-real-cli-name") is None
