"""Provider 异常体系

ProviderError 及其子类由适配器抛出，由 FallbackOrchestrator 捕获、入账并推进降级链。
InvalidRequestError 表示请求本身不合法，不会消耗任何降级链位置。
"""


class ProviderError(Exception):
    """单个 provider 调用失败的基础异常"""

    def __init__(
        self,
        message: str,
        provider: str = "",
        http_status: int | None = None,
        cause: Exception | None = None,
        recoverable: bool = True,
    ) -> None:
        """
        Args:
            message: 错误描述
            provider: 失败的 provider 标识
            http_status: provider 返回的 HTTP 状态码（网络错误时为 None）
            cause: 原始异常
            recoverable: 是否可通过降级恢复
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.http_status = http_status
        self.cause = cause
        self.recoverable = recoverable


class ProviderTimeoutError(ProviderError):
    """provider 调用超时

    与其他失败同形，同样触发降级。
    """

    def __init__(self, provider: str, timeout_s: float, cause: Exception | None = None) -> None:
        super().__init__(
            f"{provider} 调用超时（{timeout_s}s）",
            provider=provider,
            cause=cause,
        )
        self.timeout_s = timeout_s


class ProviderResponseError(ProviderError):
    """provider 响应体无法解析（非 JSON 或缺少必需字段）"""


class SafetyRejectionError(ProviderError):
    """provider 以内容安全为由拒绝生成"""


class UnsupportedProviderError(ProviderError):
    """降级链中出现了没有对应适配器的 provider"""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Unsupported provider: {provider}",
            provider=provider,
            recoverable=False,
        )


class InvalidRequestError(Exception):
    """生成请求校验失败

    在尝试任何 provider 之前抛出。
    """

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
