import asyncio
from typing import Any, Dict, List, Optional

import pytest


class FakeProcess:
    """asyncio.subprocess.Process 的替身。"""

    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, hang: bool = False):
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self._released = asyncio.Event() if hang else None
        self.returncode: Optional[int] = None if hang else returncode
        self._final_code = returncode
        self.pid = 4242
        self.killed = False

    async def communicate(self):
        if self._hang:
            await self._released.wait()
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        if self.returncode is None:
            self.returncode = self._final_code
        return self.returncode


class CliRecorder:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    @property
    def last_args(self) -> List[str]:
        return self.calls[-1]["args"]


@pytest.fixture
def fake_cli(monkeypatch):
    """把 asyncio.create_subprocess_exec 替换为返回 FakeProcess 的函数。"""

    recorder = CliRecorder()

    def install(proc: FakeProcess) -> CliRecorder:
        async def _exec(binary, *args, **kwargs):
            recorder.calls.append({"binary": binary, "args": list(args), "kwargs": kwargs})
            return proc

        monkeypatch.setattr("asyncio.create_subprocess_exec", _exec)
        return recorder

    return install
