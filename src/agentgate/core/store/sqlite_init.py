"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# ai_model_usage 表 DDL（append-only 账本）
_USAGE_DDL = """
CREATE TABLE IF NOT EXISTS ai_model_usage (
    usage_id       TEXT PRIMARY KEY,
    caller_id      TEXT NOT NULL,
    agent_id       TEXT NOT NULL,
    provider       TEXT NOT NULL,
    model          TEXT NOT NULL,
    input_tokens   INTEGER NOT NULL DEFAULT 0,
    output_tokens  INTEGER NOT NULL DEFAULT 0,
    total_tokens   INTEGER NOT NULL DEFAULT 0,
    cost_usd       REAL NOT NULL DEFAULT 0,
    latency_ms     INTEGER NOT NULL DEFAULT 0,
    status         TEXT NOT NULL,
    error_message  TEXT,
    created_at     TEXT NOT NULL
);
"""

_USAGE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_usage_caller_created ON ai_model_usage(caller_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_usage_agent ON ai_model_usage(agent_id);",
]

# ai_provider_costs 表 DDL（价格以 TEXT 存储，保持 Decimal 精度）
_PROVIDER_COSTS_DDL = """
CREATE TABLE IF NOT EXISTS ai_provider_costs (
    provider            TEXT NOT NULL,
    model               TEXT NOT NULL,
    input_cost_per_1k   TEXT NOT NULL,
    output_cost_per_1k  TEXT NOT NULL,
    updated_at          TEXT NOT NULL,

    PRIMARY KEY (provider, model)
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_USAGE_DDL)
    await conn.execute(_PROVIDER_COSTS_DDL)

    for idx_sql in _USAGE_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
