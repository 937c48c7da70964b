"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 API 层统一映射为 `{"error": ...}` 与 HTTP 状态码。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时使用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、model、attempts 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """入参校验失败（messages 为空、role 非法、未知 provider 等）。"""


class ConfigurationError(BusinessError):
    """所选 Provider 缺少凭证或没有可用的候选模型。

    在任何网络请求之前抛出。
    """

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class ProviderTransportError(BusinessError):
    """单个候选调用失败：连接错误、超时或非 2xx 响应。

    FallbackRouter 内部捕获后切换到下一个候选。
    """

    def __init__(self, code: str, message: str, http_status: int = 502, **extra):
        super().__init__(code, message, http_status, **extra)


class MalformedResponseError(ProviderTransportError):
    """候选返回成功状态，但响应中取不到生成文本。"""


class ProviderExhaustedError(BusinessError):
    """某个 Provider 的全部候选均失败。"""

    def __init__(self, code: str, message: str, http_status: int = 502, **extra):
        super().__init__(code, message, http_status, **extra)


class StorageError(BusinessError):
    """历史记录存储读写失败，聊天主流程中只记录日志、不向上抛出。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)
