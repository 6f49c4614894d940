"""SQLite 初始化测试 -- WAL 模式与 schema"""

import aiosqlite
from agentgate.core.store.sqlite_init import init_db, verify_wal_mode


class TestSqliteInit:
    async def test_init_enables_wal(self, db_conn):
        assert await verify_wal_mode(db_conn) is True

    async def test_fresh_connection_is_not_wal(self, tmp_path):
        async with aiosqlite.connect(str(tmp_path / "plain.db")) as conn:
            assert await verify_wal_mode(conn) is False

    async def test_init_is_idempotent(self, db_conn):
        await init_db(db_conn)

        cursor = await db_conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        tables = [row[0] for row in await cursor.fetchall()]
        assert "ai_model_usage" in tables
        assert "ai_provider_costs" in tables
