"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、用量统计默认窗口、静态降级文案截断长度等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("AGENTGATE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "AGENTGATE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "agentgate.db"),
    )


# 用量统计默认时间窗口（天）
USAGE_DEFAULT_WINDOW_DAYS: int = int(
    os.environ.get("AGENTGATE_USAGE_DEFAULT_WINDOW_DAYS", "30")
)

# 用量记录中 error_message 的最大长度
USAGE_ERROR_MESSAGE_MAX_LENGTH: int = 1000
