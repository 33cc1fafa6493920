"""SQLite 数据库初始化

PRAGMA 配置 + 四张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id          TEXT PRIMARY KEY,
    tenant_id        TEXT NOT NULL,
    title            TEXT NOT NULL,
    description      TEXT NOT NULL DEFAULT '',
    status           TEXT NOT NULL DEFAULT 'Pending',
    priority         TEXT NOT NULL DEFAULT 'Medium',
    due_date         TEXT,
    assignment_type  TEXT NOT NULL,
    assignee_emails  TEXT NOT NULL DEFAULT '[]',
    team_id          TEXT,
    creator_email    TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL,
    category         TEXT NOT NULL DEFAULT 'General',
    tags             TEXT NOT NULL DEFAULT '[]',
    estimated_hours  REAL NOT NULL DEFAULT 0,
    pointers         TEXT NOT NULL DEFAULT '{}'
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_tenant_status ON tasks(tenant_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_tenant_created_at ON tasks(tenant_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_creator ON tasks(tenant_id, creator_email);",
]

# task_history 表 DDL（独立的有序日志，以 task_id 为键）
_HISTORY_DDL = """
CREATE TABLE IF NOT EXISTS task_history (
    entry_id   TEXT PRIMARY KEY,
    task_id    TEXT NOT NULL,
    tenant_id  TEXT NOT NULL,
    task_seq   INTEGER NOT NULL,
    ts         TEXT NOT NULL,
    type       TEXT NOT NULL,
    actor      TEXT NOT NULL,
    detail     TEXT,
    payload    TEXT NOT NULL DEFAULT '{}',

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_HISTORY_INDEXES = [
    # 任务内序号唯一约束（确保 task_seq 严格单调递增）
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_history_task_seq ON task_history(task_id, task_seq);",
    "CREATE INDEX IF NOT EXISTS idx_history_task_ts ON task_history(task_id, ts);",
]

# task_comments 表 DDL
_COMMENTS_DDL = """
CREATE TABLE IF NOT EXISTS task_comments (
    comment_id  TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    actor       TEXT NOT NULL,
    text        TEXT NOT NULL,
    ts          TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

# task_attachments 表 DDL
_ATTACHMENTS_DDL = """
CREATE TABLE IF NOT EXISTS task_attachments (
    attachment_id  TEXT PRIMARY KEY,
    task_id        TEXT NOT NULL,
    actor          TEXT NOT NULL,
    name           TEXT NOT NULL,
    url            TEXT NOT NULL,
    ts             TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_ACTIVITY_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_comments_task_id ON task_comments(task_id, ts);",
    "CREATE INDEX IF NOT EXISTS idx_attachments_task_id ON task_attachments(task_id, ts);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_HISTORY_DDL)
    await conn.execute(_COMMENTS_DDL)
    await conn.execute(_ATTACHMENTS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _HISTORY_INDEXES + _ACTIVITY_INDEXES:
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
