"""系统提示词加载工具。

claude CLI 默认的系统提示词偏向写代码，这里提供一个通用助手的替代版本，
文本放在 prompts 目录下的 markdown 文件中。讨论模式的提示词见 discussion 模块。
"""

from pathlib import Path
from typing import Optional


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(agent_type: str = "claude", override: Optional[str] = None) -> str:
    """加载某个 agent 的默认系统提示词。

    override 非空时直接返回（对应配置项 default_system_prompt）。
    目前只有 claude 支持系统提示词。
    """

    if override:
        return override
    fname = PROMPTS_DIR / f"{agent_type}_system.md"
    return fname.read_text(encoding="utf-8").strip()
