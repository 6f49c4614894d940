"""UsageStore SQLite 实现

用量表 append-only：只允许插入，不允许更新或删除。
读侧提供按调用方和按 agent 的两类聚合查询。
"""

import contextlib
from collections import defaultdict
from datetime import UTC, datetime
from decimal import Decimal

import aiosqlite

from ..models.enums import UsageStatus
from ..models.usage import PerformanceAggregate, UsageAggregate, UsageRecord


class UsagePersistenceError(Exception):
    """用量记录写入失败

    由 UsageRecorder 捕获并记录日志，不会影响生成请求的结果。
    """

    def __init__(self, usage_id: str, original_error: Exception) -> None:
        super().__init__(f"用量记录写入失败: {usage_id} -- {original_error}")
        self.usage_id = usage_id
        self.original_error = original_error


def _to_db_ts(value: datetime) -> str:
    """统一转换为 UTC 微秒精度 ISO 字符串，保证字典序即时间序"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


class SqliteUsageStore:
    """UsageStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_usage(self, record: UsageRecord) -> None:
        """追加用量记录（append-only），写入即提交

        Raises:
            UsagePersistenceError: 写入或提交失败
        """
        try:
            await self._conn.execute(
                """
                INSERT INTO ai_model_usage (usage_id, caller_id, agent_id, provider, model,
                                            input_tokens, output_tokens, total_tokens,
                                            cost_usd, latency_ms, status, error_message,
                                            created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.usage_id,
                    record.caller_id,
                    record.agent_id,
                    record.provider,
                    record.model,
                    record.input_tokens,
                    record.output_tokens,
                    record.total_tokens,
                    float(record.cost_usd),
                    record.latency_ms,
                    record.status.value,
                    record.error_message,
                    _to_db_ts(record.created_at),
                ),
            )
            await self._conn.commit()
        except (aiosqlite.Error, ValueError) as e:
            # 连接已关闭时 rollback 本身也会失败
            with contextlib.suppress(Exception):
                await self._conn.rollback()
            raise UsagePersistenceError(record.usage_id, e) from e

    async def list_usage(
        self,
        caller_id: str | None = None,
        agent_id: str | None = None,
    ) -> list[UsageRecord]:
        """查询用量明细，按写入顺序返回"""
        clauses: list[str] = []
        params: list[str] = []
        if caller_id is not None:
            clauses.append("caller_id = ?")
            params.append(caller_id)
        if agent_id is not None:
            clauses.append("agent_id = ?")
            params.append(agent_id)

        sql = "SELECT * FROM ai_model_usage"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY rowid ASC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def aggregate_usage(
        self,
        caller_id: str,
        start: datetime,
        end: datetime,
    ) -> list[UsageAggregate]:
        """按 (provider, agent_id) 汇总调用方在 [start, end] 内的用量"""
        cursor = await self._conn.execute(
            """
            SELECT provider, agent_id,
                   COALESCE(SUM(total_tokens), 0),
                   COALESCE(SUM(cost_usd), 0),
                   COUNT(*)
            FROM ai_model_usage
            WHERE caller_id = ? AND created_at >= ? AND created_at <= ?
            GROUP BY provider, agent_id
            ORDER BY provider, agent_id
            """,
            (caller_id, _to_db_ts(start), _to_db_ts(end)),
        )
        rows = await cursor.fetchall()
        return [
            UsageAggregate(
                provider=row[0],
                agent_id=row[1],
                total_tokens=row[2],
                total_cost_usd=_to_decimal(row[3]),
                count=row[4],
            )
            for row in rows
        ]

    async def aggregate_performance(self, agent_id: str) -> list[PerformanceAggregate]:
        """按 (provider, model) 汇总指定 agent 的延迟、成本和状态分布"""
        cursor = await self._conn.execute(
            """
            SELECT provider, model, status,
                   COUNT(*), SUM(latency_ms), SUM(cost_usd)
            FROM ai_model_usage
            WHERE agent_id = ?
            GROUP BY provider, model, status
            ORDER BY provider, model, status
            """,
            (agent_id,),
        )
        rows = await cursor.fetchall()

        # (provider, model) -> [count, latency_sum, cost_sum, {status: count}]
        buckets: dict[tuple[str, str], list] = defaultdict(
            lambda: [0, 0, Decimal("0"), {}]
        )
        for provider, model, status, count, latency_sum, cost_sum in rows:
            bucket = buckets[(provider, model)]
            bucket[0] += count
            bucket[1] += latency_sum or 0
            bucket[2] += _to_decimal(cost_sum)
            bucket[3][status] = count

        return [
            PerformanceAggregate(
                provider=provider,
                model=model,
                avg_latency_ms=latency_sum / count,
                avg_cost_usd=cost_sum / count,
                count=count,
                count_by_status=by_status,
            )
            for (provider, model), (count, latency_sum, cost_sum, by_status) in buckets.items()
        ]

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> UsageRecord:
        """将数据库行转换为 UsageRecord 模型"""
        return UsageRecord(
            usage_id=row[0],
            caller_id=row[1],
            agent_id=row[2],
            provider=row[3],
            model=row[4],
            input_tokens=row[5],
            output_tokens=row[6],
            cost_usd=_to_decimal(row[8]),
            latency_ms=row[9],
            status=UsageStatus(row[10]),
            error_message=row[11],
            created_at=datetime.fromisoformat(row[12]),
        )
