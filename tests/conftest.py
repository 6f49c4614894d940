"""全局 pytest 配置 -- 临时 SQLite 数据库 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest_asyncio
from agentgate.core.store import StoreGroup, create_store_group

# litellm 导入时默认拉取远程价格表，测试中只用包内自带的副本
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from agentgate.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "conn.db"))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 Store 实例组"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()
