"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 HTTP 层做统一捕获并映射为状态码。

分类：
- 请求阶段（不会启动任何子进程）：MalformedRequestError / InvalidProviderError /
  ProviderUnavailableError / ProviderMismatchError。
- 进程阶段（子进程已启动）：ProcessTimeoutError / ProcessFailureError。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "PROCESS_TIMEOUT"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、conversation_id 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class MalformedRequestError(BusinessError):
    """请求缺少必填字段或字段类型不对。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="MALFORMED_REQUEST", message=message, http_status=400, **extra)


class InvalidProviderError(BusinessError):
    """请求的 agent 类型不在支持列表中。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="INVALID_PROVIDER", message=message, http_status=400, **extra)


class ProviderUnavailableError(BusinessError):
    """对应 CLI 可执行文件不存在。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="PROVIDER_UNAVAILABLE", message=message, http_status=400, **extra)


class ProviderMismatchError(BusinessError):
    """会话已固定在另一个 agent 类型上。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="PROVIDER_MISMATCH", message=message, http_status=409, **extra)


class ProcessTimeoutError(BusinessError):
    """子进程超过时间上限，已被强制结束。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="PROCESS_TIMEOUT", message=message, http_status=504, **extra)


class ProcessFailureError(BusinessError):
    """子进程以非零状态退出，或无法启动。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="PROCESS_FAILURE", message=message, http_status=502, **extra)
