"""AgentGate Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    STATIC_MODEL,
    STATIC_PROVIDER,
    ProviderName,
    ReasoningEffort,
    UsageStatus,
)
from .pricing import PricingEntry
from .usage import PerformanceAggregate, UsageAggregate, UsageRecord

__all__ = [
    # 枚举
    "UsageStatus",
    "ProviderName",
    "ReasoningEffort",
    "STATIC_PROVIDER",
    "STATIC_MODEL",
    # 用量
    "UsageRecord",
    "UsageAggregate",
    "PerformanceAggregate",
    # 价格
    "PricingEntry",
]
