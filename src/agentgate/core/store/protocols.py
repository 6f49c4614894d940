"""Store Protocol 接口定义

定义 UsageStore、PricingStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Protocol

from ..models.pricing import PricingEntry
from ..models.usage import PerformanceAggregate, UsageAggregate, UsageRecord


class UsageStore(Protocol):
    """用量账本存储接口

    append-only：只允许插入，不允许更新或删除。
    """

    async def append_usage(self, record: UsageRecord) -> None:
        """追加用量记录"""
        ...

    async def list_usage(
        self,
        caller_id: str | None = None,
        agent_id: str | None = None,
    ) -> list[UsageRecord]:
        """查询用量明细"""
        ...

    async def aggregate_usage(
        self,
        caller_id: str,
        start: datetime,
        end: datetime,
    ) -> list[UsageAggregate]:
        """按 (provider, agent_id) 汇总调用方用量"""
        ...

    async def aggregate_performance(self, agent_id: str) -> list[PerformanceAggregate]:
        """按 (provider, model) 汇总 agent 性能指标"""
        ...


class PricingStore(Protocol):
    """价格表存储接口"""

    async def list_pricing(self) -> list[PricingEntry]:
        """查询全部价格条目"""
        ...

    async def upsert_pricing(self, entry: PricingEntry) -> None:
        """写入或覆盖单个价格条目"""
        ...
