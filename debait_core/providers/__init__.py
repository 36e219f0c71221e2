"""CLI agent 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护各 agent 的静态配置 (registry)。
- 执行子进程 (process) 并解析输出 (parsers)、归一化用量 (usage)。
- 提供各 agent 的具体实现 (claude_client、codex_client、gemini_client)。
"""

from typing import Dict, Optional

from debait_core.config.settings import settings
from debait_core.domain.exceptions import InvalidProviderError
from debait_core.domain.models import SUPPORTED_AGENT_KINDS
from debait_core.providers.base import ProviderClient
from debait_core.providers.claude_client import ClaudeClient
from debait_core.providers.codex_client import CodexClient
from debait_core.providers.gemini_client import GeminiClient


def create_provider(name: Optional[str] = None, cfg=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    cfg = cfg or settings
    provider_name = (name or getattr(cfg, "default_provider", "claude")).lower()
    if provider_name == "claude":
        return ClaudeClient(cfg)
    if provider_name == "codex":
        return CodexClient(cfg)
    if provider_name == "gemini":
        return GeminiClient(cfg)
    raise InvalidProviderError(
        f"Invalid provider. Must be one of: {', '.join(SUPPORTED_AGENT_KINDS)}",
        provider=provider_name,
    )


def create_all_providers(cfg=None) -> Dict[str, ProviderClient]:
    return {kind: create_provider(kind, cfg) for kind in SUPPORTED_AGENT_KINDS}
