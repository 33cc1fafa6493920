"""ActivityStore SQLite 实现 -- 评论与附件

两个子集合都是 append-only，只在任务删除时一并清除。
附件只保存名称与 URL，文件内容由外部存储托管。
"""

from datetime import datetime

import aiosqlite

from ..models.activity import Attachment, Comment


class SqliteActivityStore:
    """评论 / 附件存储"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def add_comment(self, comment: Comment) -> None:
        """追加评论（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO task_comments (comment_id, task_id, actor, text, ts)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                comment.comment_id,
                comment.task_id,
                comment.actor,
                comment.text,
                comment.ts.isoformat(),
            ),
        )

    async def list_comments_for_task(self, task_id: str) -> list[Comment]:
        """按时间正序返回评论"""
        cursor = await self._conn.execute(
            """
            SELECT comment_id, task_id, actor, text, ts FROM task_comments
            WHERE task_id = ? ORDER BY ts ASC, comment_id ASC
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [
            Comment(
                comment_id=row[0],
                task_id=row[1],
                actor=row[2],
                text=row[3],
                ts=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    async def add_attachment(self, attachment: Attachment) -> None:
        """追加附件记录（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO task_attachments (attachment_id, task_id, actor, name, url, ts)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                attachment.attachment_id,
                attachment.task_id,
                attachment.actor,
                attachment.name,
                attachment.url,
                attachment.ts.isoformat(),
            ),
        )

    async def list_attachments_for_task(self, task_id: str) -> list[Attachment]:
        """按时间正序返回附件"""
        cursor = await self._conn.execute(
            """
            SELECT attachment_id, task_id, actor, name, url, ts FROM task_attachments
            WHERE task_id = ? ORDER BY ts ASC, attachment_id ASC
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [
            Attachment(
                attachment_id=row[0],
                task_id=row[1],
                actor=row[2],
                name=row[3],
                url=row[4],
                ts=datetime.fromisoformat(row[5]),
            )
            for row in rows
        ]

    async def delete_for_task(self, task_id: str) -> None:
        """随任务删除评论与附件（仅供删除事务调用）"""
        await self._conn.execute("DELETE FROM task_comments WHERE task_id = ?", (task_id,))
        await self._conn.execute("DELETE FROM task_attachments WHERE task_id = ?", (task_id,))
