"""Gemini CLI 适配器。

调用形式：

    gemini -o json [--resume <session_id>] <prompt> --yolo

输出是单个 JSON 文档：response / session_id / stats（按模型分组的 token 统计）。
gemini 这里不透传模型与系统提示词。
"""

import time
from typing import List, Optional

from debait_core.config.settings import settings
from debait_core.domain.models import AgentResponse, InvokeOptions
from debait_core.infrastructure.logging.logger import logger
from debait_core.providers.parsers import OutputParseError, parse_json_document
from debait_core.providers.process import DEFAULT_PROCESS_TIMEOUT, resolve_binary, run_cli
from debait_core.providers.registry import GEMINI_CONFIG


class GeminiClient:
    """Gemini CLI 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def binary(self) -> str:
        return getattr(self._settings, "gemini_bin", None) or GEMINI_CONFIG.default_binary

    def is_available(self) -> bool:
        return resolve_binary(self.binary) is not None

    async def invoke(self, prompt: str, options: Optional[InvokeOptions] = None) -> AgentResponse:
        options = options or InvokeOptions()
        args = self._build_args(prompt, options)
        logger.info(
            "Spawning gemini",
            extra={"extra": {"prompt_preview": prompt[:80], "resume_session": options.continuation_token}},
        )
        start = time.monotonic()
        timeout = getattr(self._settings, "process_timeout", DEFAULT_PROCESS_TIMEOUT)
        output = await run_cli(self.name, self.binary, args, timeout=timeout)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        return self._parse_output(output.stdout, elapsed_ms)

    def _build_args(self, prompt: str, options: InvokeOptions) -> List[str]:
        args = ["-o", "json"]
        if options.continuation_token:
            args += ["--resume", options.continuation_token]
        args += [prompt, "--yolo"]
        if options.model or options.system_prompt:
            logger.debug("gemini ignores model/system prompt overrides")
        return args

    def _parse_output(self, stdout: str, elapsed_ms: int) -> AgentResponse:
        try:
            data = parse_json_document(stdout)
        except OutputParseError as e:
            logger.warning(
                "Gemini JSON parse failed, returning raw",
                extra={"extra": {"error": str(e), "stdout_preview": stdout[:200]}},
            )
            return AgentResponse(result_text=stdout.strip(), duration_ms=elapsed_ms)

        result = data.get("response")
        stats = data.get("stats")
        response = AgentResponse(
            result_text=result if isinstance(result, str) else "",
            continuation_token=data.get("session_id") or None,
            raw_usage=stats if isinstance(stats, dict) else None,
            duration_ms=elapsed_ms,
        )
        logger.info(
            "Gemini response parsed OK",
            extra={"extra": {
                "result_preview": response.result_text[:100],
                "session_id": response.continuation_token,
            }},
        )
        return response
