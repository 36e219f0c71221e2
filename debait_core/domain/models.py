"""统一的调用与结果数据模型。

本模块定义了编排层在三个 CLI agent 之间共享的标准数据结构：

- InvokeOptions: 发给 Provider 适配器的调用选项（续接 token、模型、系统提示词）。
- AgentResponse: 适配器解析子进程输出后的统一响应。
- TokenUsage: 归一化后的 token 统计。
- TranscriptEntry: 圆桌讨论记录中的一条发言。
- TurnResult: 返回给 HTTP 层的最终结果。

所有 Provider 适配器都只依赖这些模型，
并负责在各自 CLI 的输出格式和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple


# 支持的 agent 类型（与 CLI 名称一致）
AgentKind = Literal["claude", "codex", "gemini"]
SUPPORTED_AGENT_KINDS: Tuple[str, ...] = ("claude", "codex", "gemini")

# 讨论记录中人类主持人的角色名
MODERATOR_ROLE = "moderator"


def is_supported_kind(name: Optional[str]) -> bool:
    return name in SUPPORTED_AGENT_KINDS


@dataclass
class InvokeOptions:
    """一次调用的可选参数。

    - continuation_token: 上一轮 agent 返回的会话标识，存在时必须续接该上下文。
    - model: 模型覆盖，仅对支持模型选择的 agent 生效。
    - system_prompt: 系统提示词覆盖，仅 claude 支持。
    """

    continuation_token: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None


@dataclass
class TokenUsage:
    """归一化的 token 统计，缺失时为 0。"""

    input: int = 0
    output: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"input": self.input, "output": self.output}


@dataclass
class AgentResponse:
    """一次 CLI 调用解析后的统一结果。

    - result_text: 回答文本，始终是字符串；结构化解析失败时为原始 stdout（已 strip）。
    - continuation_token: agent 分配的会话标识，用于下一轮续接。
    - raw_usage: agent 原样返回的用量字段，由 usage 模块归一化。
    - duration_ms: agent 自报耗时，没有时为实测耗时。
    - cost_usd: 费用（目前只有 claude 返回）。
    - aborted: codex 的 turn.aborted 事件，仅作为警告。
    """

    result_text: str
    continuation_token: Optional[str] = None
    raw_usage: Optional[Dict[str, Any]] = None
    duration_ms: Optional[int] = None
    cost_usd: Optional[float] = None
    aborted: bool = False


@dataclass
class TranscriptEntry:
    """讨论记录中的一条发言，role 为 "moderator" 或 agent 类型。"""

    role: str
    content: str


@dataclass
class TurnResult:
    """编排层返回给调用方的结果。

    讨论模式下 conversation_id 与 turn 为空。
    """

    result: str
    provider: str
    duration_ms: int
    tokens: TokenUsage = field(default_factory=TokenUsage)
    conversation_id: Optional[str] = None
    turn: Optional[int] = None
    aborted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "result": self.result,
            "provider": self.provider,
            "durationMs": self.duration_ms,
            "tokens": self.tokens.to_dict(),
            "aborted": self.aborted,
        }
        if self.conversation_id is not None:
            payload["conversationId"] = self.conversation_id
        if self.turn is not None:
            payload["turn"] = self.turn
        return payload
