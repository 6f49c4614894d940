"""用量账本 Domain Model

ai_model_usage 表 append-only：每次 provider 尝试写入一条，写入后不再修改。
usage_id 使用 ULID 格式，时间有序。
"""

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from ulid import ULID

from .enums import UsageStatus


def _new_usage_id() -> str:
    return str(ULID())


def _utc_now() -> datetime:
    return datetime.now(UTC)


class UsageRecord(BaseModel):
    """单次 provider 尝试的用量记录（不可变）"""

    model_config = ConfigDict(frozen=True)

    usage_id: str = Field(default_factory=_new_usage_id, description="ULID 主键")
    caller_id: str = Field(description="调用方标识")
    agent_id: str = Field(description="发起调用的 agent 标识")
    provider: str = Field(description="provider 标识（静态降级为 static）")
    model: str = Field(description="模型名称")
    input_tokens: int = Field(default=0, ge=0, description="输入 token 数")
    output_tokens: int = Field(default=0, ge=0, description="输出 token 数")
    cost_usd: Decimal = Field(default=Decimal("0"), ge=0, description="本次尝试的 USD 成本")
    latency_ms: int = Field(default=0, ge=0, description="尝试耗时（毫秒）")
    status: UsageStatus = Field(description="尝试结果")
    error_message: str | None = Field(default=None, description="失败原因")
    created_at: datetime = Field(default_factory=_utc_now, description="记录时间（UTC）")

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class UsageAggregate(BaseModel):
    """按 (provider, agent_id) 汇总的调用方用量"""

    provider: str
    agent_id: str
    total_tokens: int = 0
    total_cost_usd: Decimal = Decimal("0")
    count: int = 0


class PerformanceAggregate(BaseModel):
    """按 (provider, model) 汇总的 agent 性能指标"""

    provider: str
    model: str
    avg_latency_ms: float = 0.0
    avg_cost_usd: Decimal = Decimal("0")
    count: int = 0
    count_by_status: dict[str, int] = Field(default_factory=dict)
