"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层做统一捕获并映射为 HTTP 状态码。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数、输入或配置校验失败（调用方错误）。"""


class DuplicateToolError(ValidationError):
    """启动阶段注册了同名工具。"""


class NotFoundError(BusinessError):
    """请求的资源（如会话）不存在。"""

    def __init__(self, code: str, message: str, http_status: int = 404, **extra):
        super().__init__(code, message, http_status, **extra)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""

    def __init__(self, code: str, message: str, http_status: int = 502, **extra):
        super().__init__(code, message, http_status, **extra)


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误；本层不做重试。"""


class ProviderProtocolError(BusinessError):
    """Provider 响应违反协议，例如没有返回任何 choice。"""

    def __init__(self, code: str, message: str, http_status: int = 502, **extra):
        super().__init__(code, message, http_status, **extra)


class ToolRoundLimitError(BusinessError):
    """超过最大工具轮数仍未得到最终回答。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class ToolError(BusinessError):
    """单个工具执行失败（参数错误、上游服务错误等）。

    在回复循环里不会向外抛出，而是作为 tool 消息反馈给模型。
    """


class InternalError(BusinessError):
    """协调层对外暴露的内部错误（回复生成失败等）。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)
