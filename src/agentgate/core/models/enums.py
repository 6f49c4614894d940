"""枚举定义 -- 用量状态、Provider 标识、推理强度"""

from enum import StrEnum


class UsageStatus(StrEnum):
    """单次尝试的结果状态"""

    SUCCESS = "success"
    FAILED = "failed"
    # 上游请求被取消时，在途尝试以此状态入账
    CANCELLED = "cancelled"


class ProviderName(StrEnum):
    """已接入的 Provider 标识"""

    OLLAMA = "ollama"
    GOOGLE = "google"
    ANTHROPIC = "anthropic"


class ReasoningEffort(StrEnum):
    """推理强度"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# 静态降级的 provider/model 标识（写入用量表）
STATIC_PROVIDER = "static"
STATIC_MODEL = "static-fallback"
