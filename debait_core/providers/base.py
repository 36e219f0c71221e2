"""Provider 抽象接口。

编排层不直接依赖具体 CLI 的参数格式，而是依赖此协议：

- 每种 agent 实现一个 ProviderClient（如 ClaudeClient）。
- 负责：把 prompt + InvokeOptions 转成命令行参数，启动子进程，
  并把输出解析为统一的 AgentResponse。

续接方式各不相同（--resume <id> 或 exec resume <id>），这是适配器自己的职责，
编排层只负责把上一轮保存的 token 原样交回来。
"""

from typing import Optional, Protocol

from debait_core.domain.models import AgentResponse, InvokeOptions


class ProviderClient(Protocol):
    """CLI agent 客户端协议。

    实现者需要提供：
    - name: agent 类型，用于日志与会话绑定。
    - binary: 实际调用的可执行文件。
    - is_available(): 可执行文件是否存在（启动前检查）。
    - invoke(prompt, options): 执行一次调用，返回统一的 AgentResponse。
    """

    name: str

    @property
    def binary(self) -> str:
        ...

    def is_available(self) -> bool:
        ...

    async def invoke(self, prompt: str, options: Optional[InvokeOptions] = None) -> AgentResponse:
        ...
