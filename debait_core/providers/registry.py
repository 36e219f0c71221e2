"""Provider 静态配置。

每种 agent 类型在这里登记：

- display_name: 讨论提示词与错误信息中使用的展示名（如 "Claude"）。
- default_binary: 默认的 CLI 命令名，可在配置中用 *_bin 覆盖。
- supports_model / supports_system_prompt: 是否透传对应的覆盖参数。

适配器和编排层只通过这里查询差异，不在业务代码里散落 if/else。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class ProviderConfig:
    """单个 agent 类型的配置。"""

    name: str
    display_name: str
    default_binary: str
    supports_model: bool
    supports_system_prompt: bool


CLAUDE_CONFIG = ProviderConfig(
    name="claude",
    display_name="Claude",
    default_binary="claude",
    supports_model=True,
    supports_system_prompt=True,
)

CODEX_CONFIG = ProviderConfig(
    name="codex",
    display_name="Codex",
    default_binary="codex",
    supports_model=True,
    supports_system_prompt=False,
)

GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    display_name="Gemini",
    default_binary="gemini",
    supports_model=False,
    supports_system_prompt=False,
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "claude": CLAUDE_CONFIG,
    "codex": CODEX_CONFIG,
    "gemini": GEMINI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def display_name(name: str) -> str:
    """返回展示名；未知名称原样返回。"""

    try:
        return get_provider_config(name).display_name
    except KeyError:
        return name
