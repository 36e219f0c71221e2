"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("DEBAIT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(
        default="claude",
        description="/new 与 /ask 未指定 provider 时使用的 agent 类型",
    )
    claude_bin: str = Field(default="claude", description="claude CLI 路径或命令名")
    codex_bin: str = Field(default="codex", description="codex CLI 路径或命令名")
    gemini_bin: str = Field(default="gemini", description="gemini CLI 路径或命令名")
    process_timeout: float = Field(default=120.0, ge=1.0, description="单次 CLI 调用的硬超时（秒）")
    default_system_prompt: Optional[str] = Field(
        default=None,
        description="claude 默认系统提示词，为空时使用内置提示词",
    )

    # ---- 存储与日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")
    sessions_file: str = Field(default="logs/sessions.json", description="会话快照文件")

    # ---- HTTP ----
    host: str = Field(default="127.0.0.1", description="监听地址")
    port: int = Field(default=3456, ge=1, le=65535, description="监听端口")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="允许的跨域来源")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("default_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
