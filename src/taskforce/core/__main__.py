"""CLI 入口 -- python -m taskforce.core <command>

命令：
  rebuild-projections  从 task_history 重放全部条目，重写 tasks 表
"""

import asyncio
import sys

from .config import get_db_path

USAGE = "用法: python -m taskforce.core rebuild-projections"


async def rebuild_projections() -> int:
    """按 TASKFORCE_DB_PATH 打开数据库并重建 tasks 表

    Returns:
        重放的历史条目数
    """
    from .projection import rebuild_all
    from .store import create_store_group

    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    try:
        entry_count = await rebuild_all(
            store_group.conn,
            store_group.history_store,
            store_group.task_store,
        )
        tasks_cursor = await store_group.conn.execute("SELECT COUNT(*) FROM tasks")
        (task_count,) = await tasks_cursor.fetchone()
    finally:
        await store_group.conn.close()

    print(f"{db_path}: 重放 {entry_count} 条历史，重建 {task_count} 个任务")
    return entry_count


COMMANDS = {
    "rebuild-projections": rebuild_projections,
}


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] not in COMMANDS:
        print(USAGE, file=sys.stderr)
        return 1
    asyncio.run(COMMANDS[args[0]]())
    return 0


if __name__ == "__main__":
    sys.exit(main())
