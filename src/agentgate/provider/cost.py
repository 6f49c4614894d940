"""CostCalculator -- 成本计算

价格表由 CostCalculator 自有的缓存对象持有：首次使用时懒加载，之后只在显式 refresh() 时更新。
成本计算是尽力而为的遥测，不是计费系统：任何查不到价格的情况都按 0 计，不抛异常。
"""

import asyncio
from decimal import Decimal

import structlog
from agentgate.core.models import PricingEntry
from agentgate.core.store import PricingStore

log = structlog.get_logger()

_ZERO = Decimal("0")
_THOUSAND = Decimal(1000)


class PricingTable:
    """(provider, model) -> PricingEntry 的只读索引"""

    def __init__(self, entries: list[PricingEntry] | None = None) -> None:
        self._entries: dict[tuple[str, str], PricingEntry] = {}
        for entry in entries or []:
            self._entries[entry.key] = entry

    def lookup(self, provider: str, model: str) -> PricingEntry | None:
        """按 (provider, model) 精确匹配"""
        return self._entries.get((provider, model))

    def __len__(self) -> int:
        return len(self._entries)


class CostCalculator:
    """成本计算器

    价格来源二选一:
    - pricing_store: 从持久层懒加载，refresh() 重新加载
    - entries: 直接注入的静态价格（测试或无持久层场景）
    """

    def __init__(
        self,
        pricing_store: PricingStore | None = None,
        entries: list[PricingEntry] | None = None,
    ) -> None:
        self._store = pricing_store
        self._table = PricingTable(entries)
        self._loaded = pricing_store is None or entries is not None
        # 单写者保护：并发请求首次访问时只加载一次
        self._lock = asyncio.Lock()

    @property
    def table(self) -> PricingTable:
        return self._table

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def ensure_loaded(self) -> None:
        """首次访问时加载价格表；加载失败时保持空表，下次访问重试"""
        if self._loaded:
            return
        async with self._lock:
            if not self._loaded:
                await self._load()

    async def refresh(self) -> bool:
        """显式重新加载价格表

        Returns:
            True 如果加载成功；失败时保留旧表并返回 False
        """
        async with self._lock:
            return await self._load()

    async def _load(self) -> bool:
        if self._store is None:
            self._loaded = True
            return True
        try:
            entries = await self._store.list_pricing()
        except Exception as e:
            log.warning("pricing_load_failed", error=str(e), error_type=type(e).__name__)
            return False
        # 整表替换，读者不会看到半加载状态
        self._table = PricingTable(entries)
        self._loaded = True
        log.info("pricing_loaded", count=len(entries))
        return True

    def cost(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
    ) -> Decimal:
        """计算单次调用成本（USD）

        公式: input_tokens/1000 * input_cost_per_1k + output_tokens/1000 * output_cost_per_1k

        Returns:
            成本；(provider, model) 不在价格表中时返回 0
        """
        entry = self._table.lookup(provider, model)
        if entry is None:
            return _ZERO

        input_cost = Decimal(input_tokens) / _THOUSAND * entry.input_cost_per_1k
        output_cost = Decimal(output_tokens) / _THOUSAND * entry.output_cost_per_1k
        return input_cost + output_cost
