"""Claude CLI 适配器。

调用形式：

    claude -p <prompt> --output-format json [--resume <session_id>] [--model m] [--system-prompt s]

输出是单个 JSON 文档，关心的字段：result / session_id / usage / duration_ms / total_cost_usd。
"""

import time
from typing import List, Optional

from debait_core.config.settings import settings
from debait_core.domain.models import AgentResponse, InvokeOptions
from debait_core.infrastructure.logging.logger import logger
from debait_core.providers.parsers import OutputParseError, parse_json_document
from debait_core.providers.process import DEFAULT_PROCESS_TIMEOUT, resolve_binary, run_cli
from debait_core.providers.registry import CLAUDE_CONFIG


class ClaudeClient:
    """Claude Code CLI 客户端实现。"""

    name = "claude"

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def binary(self) -> str:
        return getattr(self._settings, "claude_bin", None) or CLAUDE_CONFIG.default_binary

    def is_available(self) -> bool:
        return resolve_binary(self.binary) is not None

    async def invoke(self, prompt: str, options: Optional[InvokeOptions] = None) -> AgentResponse:
        options = options or InvokeOptions()
        args = self._build_args(prompt, options)
        logger.info(
            "Spawning claude",
            extra={"extra": {"prompt_preview": prompt[:80], "resume_session": options.continuation_token}},
        )
        start = time.monotonic()
        timeout = getattr(self._settings, "process_timeout", DEFAULT_PROCESS_TIMEOUT)
        output = await run_cli(self.name, self.binary, args, timeout=timeout)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        return self._parse_output(output.stdout, elapsed_ms)

    def _build_args(self, prompt: str, options: InvokeOptions) -> List[str]:
        args = ["-p", prompt, "--output-format", "json"]
        if options.continuation_token:
            args += ["--resume", options.continuation_token]
        if options.model:
            args += ["--model", options.model]
        if options.system_prompt:
            args += ["--system-prompt", options.system_prompt]
        return args

    def _parse_output(self, stdout: str, elapsed_ms: int) -> AgentResponse:
        try:
            data = parse_json_document(stdout)
        except OutputParseError as e:
            logger.warning(
                "Claude JSON parse failed, returning raw",
                extra={"extra": {"error": str(e), "stdout_preview": stdout[:200]}},
            )
            return AgentResponse(result_text=stdout.strip(), duration_ms=elapsed_ms)

        result = data.get("result")
        usage = data.get("usage")
        duration = data.get("duration_ms")
        cost = data.get("total_cost_usd")
        if data.get("is_error"):
            logger.warning("Claude reported an error result", extra={"extra": {"subtype": data.get("subtype")}})
        response = AgentResponse(
            result_text=result if isinstance(result, str) else "",
            continuation_token=data.get("session_id") or None,
            raw_usage=usage if isinstance(usage, dict) else None,
            duration_ms=int(duration) if isinstance(duration, (int, float)) else elapsed_ms,
            cost_usd=float(cost) if isinstance(cost, (int, float)) else None,
        )
        logger.info(
            "Claude response parsed OK",
            extra={"extra": {
                "result_preview": response.result_text[:100],
                "duration_ms": response.duration_ms,
                "cost": response.cost_usd,
                "session_id": response.continuation_token,
            }},
        )
        return response
