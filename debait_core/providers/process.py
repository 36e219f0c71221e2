"""CLI 子进程执行器。

所有适配器共用这一层：启动一个子进程（stdin 关闭），完整收集 stdout/stderr，
超时后对整个进程组发送 SIGKILL，不做重试，也不保留部分输出。
"""

import asyncio
import contextlib
import os
import shutil
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from debait_core.domain.exceptions import (
    ProcessFailureError,
    ProcessTimeoutError,
    ProviderUnavailableError,
)
from debait_core.infrastructure.logging.logger import logger

DEFAULT_PROCESS_TIMEOUT = 120.0
LOG_PREVIEW_CHARS = 500
# 杀掉进程组之后等待回收的上限（秒）
REAP_TIMEOUT = 5.0


@dataclass
class ProcessOutput:
    returncode: int
    stdout: str
    stderr: str


def resolve_binary(binary: str) -> Optional[str]:
    """返回可执行文件的绝对路径，找不到时返回 None。"""

    if os.sep in binary or (os.altsep and os.altsep in binary):
        path = Path(binary).expanduser()
        return str(path) if path.is_file() else None
    return shutil.which(binary)


def _kill_process_group(proc) -> None:
    """SIGKILL 整个进程组，连同 CLI 派生出的、仍持有输出管道的子进程。"""

    if hasattr(os, "killpg"):
        with contextlib.suppress(ProcessLookupError):
            os.killpg(proc.pid, signal.SIGKILL)
    with contextlib.suppress(ProcessLookupError):
        proc.kill()


async def run_cli(
    name: str,
    binary: str,
    args: Sequence[str],
    timeout: float = DEFAULT_PROCESS_TIMEOUT,
) -> ProcessOutput:
    """执行一次 CLI 调用并返回完整输出。

    Raises:
        ProviderUnavailableError: 可执行文件不存在。
        ProcessTimeoutError: 超过 timeout 秒，进程已被杀掉。
        ProcessFailureError: 进程无法启动或以非零状态退出。
    """

    try:
        proc = await asyncio.create_subprocess_exec(
            binary,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=os.environ.copy(),
            start_new_session=True,
        )
    except FileNotFoundError as e:
        logger.error(f"{name} binary not found", extra={"extra": {"binary": binary, "message": str(e)}})
        raise ProviderUnavailableError(f"{name} CLI not found at {binary}", provider=name)
    except OSError as e:
        logger.error(f"{name} spawn error", extra={"extra": {"binary": binary, "message": str(e)}})
        raise ProcessFailureError(str(e), provider=name)

    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"{name} timed out after {timeout:g}s, killing", extra={"extra": {"pid": proc.pid}})
        _kill_process_group(proc)
        try:
            await asyncio.wait_for(proc.wait(), timeout=REAP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"{name} did not exit after kill", extra={"extra": {"pid": proc.pid}})
        raise ProcessTimeoutError(f"{name} timed out after {timeout:g}s", provider=name)

    stdout = (stdout_b or b"").decode("utf-8", errors="replace")
    stderr = (stderr_b or b"").decode("utf-8", errors="replace")
    code = proc.returncode if proc.returncode is not None else -1
    logger.info(
        f"{name} process exited",
        extra={"extra": {"code": code, "stdout_bytes": len(stdout_b or b""), "stderr_bytes": len(stderr_b or b"")}},
    )
    if stderr:
        logger.warning(f"{name} stderr", extra={"extra": {"stderr": stderr[:LOG_PREVIEW_CHARS]}})

    if code != 0:
        logger.error(f"{name} failed", extra={"extra": {"code": code, "stderr": stderr[:LOG_PREVIEW_CHARS]}})
        raise ProcessFailureError(stderr or f"{name} exited with code {code}", provider=name, exit_code=code)

    return ProcessOutput(returncode=code, stdout=stdout, stderr=stderr)
