"""领域层模型与协议。

包含：
- models: 统一的 InvokeOptions / AgentResponse / TokenUsage / TurnResult 模型。
- conversation: 会话状态模型及 SessionStore 抽象。
- exceptions: 业务异常类型定义。
"""
