"""Codex CLI 适配器。

调用形式：

    codex exec <prompt> --json --full-auto --skip-git-repo-check [--model m]
    codex exec resume <thread_id> <prompt> --json --full-auto --skip-git-repo-check [--model m]

输出是逐行 JSON 事件，由 parsers.parse_jsonl_events 折叠；坏行跳过，不降级为原始文本。
"""

import time
from typing import List, Optional

from debait_core.config.settings import settings
from debait_core.domain.models import AgentResponse, InvokeOptions
from debait_core.infrastructure.logging.logger import logger
from debait_core.providers.parsers import parse_jsonl_events
from debait_core.providers.process import DEFAULT_PROCESS_TIMEOUT, resolve_binary, run_cli
from debait_core.providers.registry import CODEX_CONFIG

EXEC_FLAGS = ["--json", "--full-auto", "--skip-git-repo-check"]


class CodexClient:
    """Codex CLI 客户端实现。"""

    name = "codex"

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def binary(self) -> str:
        return getattr(self._settings, "codex_bin", None) or CODEX_CONFIG.default_binary

    def is_available(self) -> bool:
        return resolve_binary(self.binary) is not None

    async def invoke(self, prompt: str, options: Optional[InvokeOptions] = None) -> AgentResponse:
        options = options or InvokeOptions()
        args = self._build_args(prompt, options)
        logger.info(
            "Spawning codex",
            extra={"extra": {"prompt_preview": prompt[:80], "resume_session": options.continuation_token}},
        )
        start = time.monotonic()
        timeout = getattr(self._settings, "process_timeout", DEFAULT_PROCESS_TIMEOUT)
        output = await run_cli(self.name, self.binary, args, timeout=timeout)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        return self._parse_output(output.stdout, elapsed_ms)

    def _build_args(self, prompt: str, options: InvokeOptions) -> List[str]:
        if options.continuation_token:
            args = ["exec", "resume", options.continuation_token, prompt, *EXEC_FLAGS]
        else:
            args = ["exec", prompt, *EXEC_FLAGS]
        if options.model:
            args += ["--model", options.model]
        if options.system_prompt:
            logger.debug("codex has no system prompt flag, ignored")
        return args

    def _parse_output(self, stdout: str, elapsed_ms: int) -> AgentResponse:
        parsed = parse_jsonl_events(stdout)
        if parsed.events_seen == 0:
            logger.warning("Codex output had no JSON events", extra={"extra": {"stdout_preview": stdout[:200]}})
        if parsed.aborted:
            logger.warning("Codex session was aborted", extra={"extra": {"session_id": parsed.session_id}})
        logger.info(
            "Codex response parsed OK",
            extra={"extra": {
                "result_preview": parsed.result[:100],
                "session_id": parsed.session_id,
                "has_token_usage": parsed.usage is not None,
            }},
        )
        return AgentResponse(
            result_text=parsed.result,
            continuation_token=parsed.session_id,
            raw_usage=parsed.usage,
            duration_ms=elapsed_ms,
            aborted=parsed.aborted,
        )
