"""debAIt 核心包。

让一个人类主持人向多个命令行 AI agent（claude / codex / gemini）提问，
并可让这些 agent 围绕同一话题进行多轮圆桌讨论。包括配置加载、领域模型、
CLI 适配、会话续接、讨论提示词合成、日志与会话持久化等能力。
"""

from debait_core.api.service import ProviderOrchestrator, get_default_service

__all__ = ["ProviderOrchestrator", "get_default_service"]
