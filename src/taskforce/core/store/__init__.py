"""TaskForce Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .activity_store import SqliteActivityStore
from .history_store import SqliteHistoryStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore
from .transaction import (
    append_attachment_with_entry,
    append_comment_with_entry,
    append_entry_and_update_fields,
    append_entry_and_update_status,
    append_entry_and_update_team,
    create_task_with_initial_entry,
    delete_task_cascade,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    所有 Store 共用一条连接，事务作用于整条连接，
    因此写事务必须在 write_lock 内串行执行。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.history_store = SqliteHistoryStore(conn)
        self.activity_store = SqliteActivityStore(conn)
        self.write_lock = asyncio.Lock()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径（":memory:" 用于测试）

    Returns:
        StoreGroup 实例
    """
    if db_path != ":memory:":
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteHistoryStore",
    "SqliteActivityStore",
    "init_db",
    "verify_wal_mode",
    "create_task_with_initial_entry",
    "append_entry_and_update_status",
    "append_entry_and_update_team",
    "append_entry_and_update_fields",
    "append_comment_with_entry",
    "append_attachment_with_entry",
    "delete_task_cascade",
]
