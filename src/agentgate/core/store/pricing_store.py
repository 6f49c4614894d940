"""PricingStore SQLite 实现

价格以 TEXT 存储，读取时还原为 Decimal，避免浮点误差。
"""

from datetime import UTC, datetime
from decimal import Decimal

import aiosqlite

from ..models.pricing import PricingEntry


class SqlitePricingStore:
    """PricingStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_pricing(self) -> list[PricingEntry]:
        """查询全部价格条目，按 (provider, model) 排序"""
        cursor = await self._conn.execute(
            """
            SELECT provider, model, input_cost_per_1k, output_cost_per_1k
            FROM ai_provider_costs
            ORDER BY provider, model
            """
        )
        rows = await cursor.fetchall()
        return [
            PricingEntry(
                provider=row[0],
                model=row[1],
                input_cost_per_1k=Decimal(row[2]),
                output_cost_per_1k=Decimal(row[3]),
            )
            for row in rows
        ]

    async def upsert_pricing(self, entry: PricingEntry) -> None:
        """写入或覆盖单个价格条目"""
        await self._conn.execute(
            """
            INSERT INTO ai_provider_costs (provider, model, input_cost_per_1k,
                                           output_cost_per_1k, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(provider, model) DO UPDATE SET
                input_cost_per_1k = excluded.input_cost_per_1k,
                output_cost_per_1k = excluded.output_cost_per_1k,
                updated_at = excluded.updated_at
            """,
            (
                entry.provider,
                entry.model,
                str(entry.input_cost_per_1k),
                str(entry.output_cost_per_1k),
                datetime.now(UTC).isoformat(),
            ),
        )
        await self._conn.commit()
