"""TaskService -- 工单创建/流转/编辑/删除业务逻辑

每个变更操作的流程：
1. 读取任务并校验租户、可见性与授权（锁外）
2. 在 StoreGroup.write_lock 内构建历史条目并单事务提交
3. 事务成功后分发通知并推送实时快照
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime
from typing import Any

import aiosqlite
import structlog
from taskforce.core.authz import is_admin
from taskforce.core.config import COMMENT_PREVIEW_LENGTH, DEFAULT_CATEGORY, TITLE_MAX_LENGTH
from taskforce.core.exceptions import (
    PermissionDeniedError,
    TaskNotFoundError,
    TaskValidationError,
)
from taskforce.core.models import (
    Actor,
    Attachment,
    AttachmentPayload,
    Comment,
    CommentPayload,
    CreatedPayload,
    Employee,
    HistoryEntry,
    HistoryType,
    StatusChangePayload,
    Task,
    TaskDraft,
    TaskFieldsUpdate,
    TaskPointers,
    TaskStatus,
    TeamUpdatedPayload,
    UpdatePayload,
)
from taskforce.core.store import (
    StoreGroup,
    append_attachment_with_entry,
    append_comment_with_entry,
    append_entry_and_update_fields,
    append_entry_and_update_status,
    append_entry_and_update_team,
    create_task_with_initial_entry,
    delete_task_cascade,
)
from taskforce.directory.protocols import Directory, NotificationSink, TeamRegistry
from ulid import ULID

from .assignment import AssignmentResolver
from .live_hub import LiveHub
from .notification_dispatcher import NotificationDispatcher
from .visibility import build_scope
from .workflow import check_transition, parse_status, status_change_detail

log = structlog.get_logger()

EntryBuilder = Callable[[int], HistoryEntry]
EntryWriter = Callable[[HistoryEntry], Awaitable[None]]


def comment_preview(text: str) -> str:
    """评论预览：前 30 个字符，超出部分以 ... 表示"""
    if len(text) <= COMMENT_PREVIEW_LENGTH:
        return text
    return text[:COMMENT_PREVIEW_LENGTH] + "..."


def team_update_detail(added: list[str], removed: list[str]) -> str:
    parts = []
    if added:
        parts.append(f"added: {', '.join(added)}")
    if removed:
        parts.append(f"removed: {', '.join(removed)}")
    return "; ".join(parts)


def task_snapshot(task: Task) -> dict[str, Any]:
    """实时推送用的完整快照"""
    return {
        "task_id": task.task_id,
        "deleted": False,
        "latest_entry_id": task.pointers.latest_entry_id,
        "task": task.model_dump(mode="json"),
    }


def tombstone_snapshot(task_id: str) -> dict[str, Any]:
    """任务被删除后的终结快照"""
    return {"task_id": task_id, "deleted": True, "latest_entry_id": None, "task": None}


class TaskService:
    """工单业务服务"""

    _max_task_seq_retries = 3

    def __init__(
        self,
        store_group: StoreGroup,
        directory: Directory,
        teams: TeamRegistry,
        notifier: NotificationSink,
        live_hub: LiveHub | None = None,
    ) -> None:
        self._stores = store_group
        self._teams = teams
        self._resolver = AssignmentResolver(directory, teams)
        self._dispatcher = NotificationDispatcher(notifier)
        self._live_hub = live_hub

    # ------------------------------------------------------------------
    # 创建
    # ------------------------------------------------------------------

    async def create_task(self, actor: Actor, draft: TaskDraft) -> Task:
        """创建任务：解析执行人 -> 单事务写入 Task + Created 条目 -> 通知执行人

        Raises:
            TaskValidationError: 标题为空或执行人解析失败
            PermissionDeniedError: actor 无权指派
            DependencyUnavailableError: 目录或团队注册表不可用
        """
        title = self._validate_title(draft.title)
        resolved = await self._resolver.resolve(actor, draft)

        now = datetime.now(UTC)
        task_id = str(ULID())
        entry_id = str(ULID())

        task = Task(
            task_id=task_id,
            tenant_id=actor.tenant_id,
            title=title,
            description=draft.description,
            status=TaskStatus.PENDING,
            priority=draft.priority,
            due_date=draft.due_date,
            assignment_type=resolved.assignment_type,
            assignee_emails=resolved.assignee_emails,
            team_id=resolved.team_id,
            creator_email=actor.email,
            created_at=now,
            updated_at=now,
            category=draft.category.strip() or DEFAULT_CATEGORY,
            tags=draft.tags,
            estimated_hours=draft.estimated_hours,
            pointers=TaskPointers(latest_entry_id=entry_id),
        )

        entry = HistoryEntry(
            entry_id=entry_id,
            task_id=task_id,
            tenant_id=actor.tenant_id,
            task_seq=1,
            ts=now,
            type=HistoryType.CREATED,
            actor=actor.email,
            payload=CreatedPayload(
                title=task.title,
                description=task.description,
                priority=task.priority,
                due_date=task.due_date,
                assignment_type=task.assignment_type,
                assignee_emails=task.assignee_emails,
                team_id=task.team_id,
                creator_email=task.creator_email,
                category=task.category,
                tags=task.tags,
                estimated_hours=task.estimated_hours,
            ).model_dump(mode="json"),
        )

        async with self._stores.write_lock:
            await create_task_with_initial_entry(
                self._stores.conn,
                self._stores.task_store,
                self._stores.history_store,
                task,
                entry,
            )

        log.info(
            "task_created",
            task_id=task_id,
            tenant_id=actor.tenant_id,
            assignment_type=task.assignment_type.value,
            assignee_count=len(task.assignee_emails),
        )

        await self._dispatcher.task_created(task, actor)
        await self._publish(task)
        return task

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    async def get_task(self, actor: Actor, task_id: str) -> Task:
        """查询任务（需可见）"""
        task = await self._require_task(actor, task_id)
        await self._require_visible(actor, task)
        return task

    async def get_task_history(self, actor: Actor, task_id: str) -> list[HistoryEntry]:
        await self.get_task(actor, task_id)
        return await self._stores.history_store.get_entries_for_task(task_id)

    async def list_task_comments(self, actor: Actor, task_id: str) -> list[Comment]:
        await self.get_task(actor, task_id)
        return await self._stores.activity_store.list_comments_for_task(task_id)

    async def list_task_attachments(self, actor: Actor, task_id: str) -> list[Attachment]:
        await self.get_task(actor, task_id)
        return await self._stores.activity_store.list_attachments_for_task(task_id)

    async def list_tasks_visible_to(
        self,
        actor: Actor,
        status: TaskStatus | str | None = None,
        search: str | None = None,
        overdue: bool = False,
        created_by_me: bool = False,
        today: date | None = None,
    ) -> list[Task]:
        """查询 actor 可见的任务，按 created_at 倒序

        Args:
            status: 按状态筛选
            search: 标题或任一执行人 email 包含该串（不区分大小写）
            overdue: 仅保留未完成且截止日期早于今天的任务
            created_by_me: 仅保留 actor 创建的任务
            today: 逾期判断基准日（默认当天 UTC）
        """
        status_value = parse_status(status).value if status else None
        tasks = await self._stores.task_store.list_tasks(actor.tenant_id, status_value)

        scope = await build_scope(actor, self._teams)
        tasks = [t for t in tasks if scope.can_see(t)]

        if created_by_me:
            tasks = [t for t in tasks if t.creator_email == actor.email]

        if search and search.strip():
            needle = search.strip().lower()
            tasks = [
                t
                for t in tasks
                if needle in t.title.lower()
                or any(needle in email.lower() for email in t.assignee_emails)
            ]

        if overdue:
            base = today or datetime.now(UTC).date()
            tasks = [t for t in tasks if t.is_overdue(base)]

        return tasks

    async def assignment_summary(self, actor: Actor) -> dict[str, int]:
        """actor 创建的任务中未完成 / 已完成数量"""
        tasks = await self._stores.task_store.list_tasks(actor.tenant_id)
        mine = [t for t in tasks if t.creator_email == actor.email]
        completed = sum(1 for t in mine if t.status == TaskStatus.COMPLETED)
        return {"active": len(mine) - completed, "completed": completed}

    async def assignable_employees(self, actor: Actor) -> list[Employee]:
        return await self._resolver.assignable_employees(actor)

    # ------------------------------------------------------------------
    # 变更
    # ------------------------------------------------------------------

    async def transition_task_status(
        self,
        actor: Actor,
        task_id: str,
        new_status: TaskStatus | str,
        expected_status: TaskStatus | str | None = None,
    ) -> Task:
        """推进任务状态

        compare-and-set 以读到的当前状态为期望值，并发请求中只有一个成功。

        Raises:
            TaskNotFoundError / PermissionDeniedError / TaskStatusConflictError /
            TaskValidationError
        """
        target = parse_status(new_status)
        expected = parse_status(expected_status) if expected_status else None

        task = await self._require_task(actor, task_id)
        check_transition(actor, task, target, expected)
        from_status = task.status

        await self._append_with_retry(
            task_id=task_id,
            entry_builder=lambda seq: HistoryEntry(
                entry_id=str(ULID()),
                task_id=task_id,
                tenant_id=actor.tenant_id,
                task_seq=seq,
                ts=datetime.now(UTC),
                type=HistoryType.STATUS_CHANGE,
                actor=actor.email,
                detail=status_change_detail(from_status, target),
                payload=StatusChangePayload(
                    from_status=from_status,
                    to_status=target,
                ).model_dump(mode="json"),
            ),
            writer=lambda entry: append_entry_and_update_status(
                self._stores.conn,
                self._stores.history_store,
                self._stores.task_store,
                entry,
                target.value,
                from_status.value,
            ),
        )

        updated = await self._require_task(actor, task_id)
        log.info(
            "task_status_changed",
            task_id=task_id,
            from_status=from_status.value,
            to_status=target.value,
            actor=actor.email,
        )

        if target == TaskStatus.COMPLETED:
            await self._dispatcher.task_completed(updated, actor)
        await self._publish(updated)
        return updated

    async def update_task_fields(
        self,
        actor: Actor,
        task_id: str,
        update: TaskFieldsUpdate,
    ) -> Task:
        """employer/admin 编辑任务字段（last-writer-wins）

        只有值真正改变的字段会被写入；没有变化时不追加历史。
        """
        task = await self._require_task(actor, task_id)
        if not is_admin(actor):
            raise PermissionDeniedError("Only employers and admins can edit task fields")

        provided = update.provided_fields()
        if "title" in provided:
            provided["title"] = self._validate_title(provided["title"])

        changed = {key: value for key, value in provided.items() if getattr(task, key) != value}
        if not changed:
            return task

        payload = UpdatePayload(
            changed_fields=list(changed),
            values=changed,
        ).model_dump(mode="json")

        await self._append_with_retry(
            task_id=task_id,
            entry_builder=lambda seq: HistoryEntry(
                entry_id=str(ULID()),
                task_id=task_id,
                tenant_id=actor.tenant_id,
                task_seq=seq,
                ts=datetime.now(UTC),
                type=HistoryType.UPDATE,
                actor=actor.email,
                detail=", ".join(changed),
                payload=payload,
            ),
            writer=lambda entry: append_entry_and_update_fields(
                self._stores.conn,
                self._stores.history_store,
                self._stores.task_store,
                entry,
                changed,
            ),
        )

        updated = await self._require_task(actor, task_id)
        log.info("task_fields_updated", task_id=task_id, fields=list(changed))
        await self._publish(updated)
        return updated

    async def manage_task_team(
        self,
        actor: Actor,
        task_id: str,
        new_assignee_emails: list[str],
    ) -> Task:
        """Delegate 负责人调整团队成员，追加一条 TeamUpdated 条目"""
        task = await self._require_task(actor, task_id)
        change = await self._resolver.reresolve(actor, task, new_assignee_emails)

        if change.assignee_emails == task.assignee_emails:
            return task

        detail = team_update_detail(change.added, change.removed) or "reordered"
        payload = TeamUpdatedPayload(
            added=change.added,
            removed=change.removed,
            assignee_emails=change.assignee_emails,
        ).model_dump(mode="json")

        await self._append_with_retry(
            task_id=task_id,
            entry_builder=lambda seq: HistoryEntry(
                entry_id=str(ULID()),
                task_id=task_id,
                tenant_id=actor.tenant_id,
                task_seq=seq,
                ts=datetime.now(UTC),
                type=HistoryType.TEAM_UPDATED,
                actor=actor.email,
                detail=detail,
                payload=payload,
            ),
            writer=lambda entry: append_entry_and_update_team(
                self._stores.conn,
                self._stores.history_store,
                self._stores.task_store,
                entry,
                change.assignee_emails,
                expected_assignee_emails=task.assignee_emails,
            ),
        )

        updated = await self._require_task(actor, task_id)
        log.info(
            "task_team_updated",
            task_id=task_id,
            added=change.added,
            removed=change.removed,
        )
        await self._publish(updated)
        return updated

    async def add_task_comment(self, actor: Actor, task_id: str, text: str) -> Comment:
        """执行人、创建者或 employer/admin 追加评论"""
        task = await self._require_task(actor, task_id)
        self._require_contributor(actor, task)

        text = (text or "").strip()
        if not text:
            raise TaskValidationError("Comment text must not be empty")

        comment = Comment(
            comment_id=str(ULID()),
            task_id=task_id,
            actor=actor.email,
            text=text,
            ts=datetime.now(UTC),
        )

        await self._append_with_retry(
            task_id=task_id,
            entry_builder=lambda seq: HistoryEntry(
                entry_id=str(ULID()),
                task_id=task_id,
                tenant_id=actor.tenant_id,
                task_seq=seq,
                ts=comment.ts,
                type=HistoryType.COMMENT,
                actor=actor.email,
                detail=comment_preview(text),
                payload=CommentPayload(
                    comment_id=comment.comment_id,
                    text_length=len(text),
                ).model_dump(mode="json"),
            ),
            writer=lambda entry: append_comment_with_entry(
                self._stores.conn,
                self._stores.activity_store,
                self._stores.history_store,
                self._stores.task_store,
                comment,
                entry,
            ),
        )

        await self._publish(await self._require_task(actor, task_id))
        return comment

    async def add_task_attachment(
        self,
        actor: Actor,
        task_id: str,
        name: str,
        url: str,
    ) -> Attachment:
        """执行人、创建者或 employer/admin 追加附件引用"""
        task = await self._require_task(actor, task_id)
        self._require_contributor(actor, task)

        name = (name or "").strip()
        url = (url or "").strip()
        if not name or not url:
            raise TaskValidationError("Attachment name and url are required")

        attachment = Attachment(
            attachment_id=str(ULID()),
            task_id=task_id,
            actor=actor.email,
            name=name,
            url=url,
            ts=datetime.now(UTC),
        )

        await self._append_with_retry(
            task_id=task_id,
            entry_builder=lambda seq: HistoryEntry(
                entry_id=str(ULID()),
                task_id=task_id,
                tenant_id=actor.tenant_id,
                task_seq=seq,
                ts=attachment.ts,
                type=HistoryType.ATTACHMENT,
                actor=actor.email,
                detail=name,
                payload=AttachmentPayload(
                    attachment_id=attachment.attachment_id,
                    name=name,
                    url=url,
                ).model_dump(mode="json"),
            ),
            writer=lambda entry: append_attachment_with_entry(
                self._stores.conn,
                self._stores.activity_store,
                self._stores.history_store,
                self._stores.task_store,
                attachment,
                entry,
            ),
        )

        await self._publish(await self._require_task(actor, task_id))
        return attachment

    async def delete_task(self, actor: Actor, task_id: str) -> None:
        """employer/admin 物理删除任务及其历史、评论、附件"""
        await self._require_task(actor, task_id)
        if not is_admin(actor):
            raise PermissionDeniedError("Only employers and admins can delete tasks")

        async with self._stores.write_lock:
            deleted = await delete_task_cascade(
                self._stores.conn,
                self._stores.task_store,
                self._stores.history_store,
                self._stores.activity_store,
                actor.tenant_id,
                task_id,
            )
        if not deleted:
            raise TaskNotFoundError(task_id)

        log.info("task_deleted", task_id=task_id, actor=actor.email)
        if self._live_hub:
            await self._live_hub.publish(task_id, tombstone_snapshot(task_id))

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    async def _require_task(self, actor: Actor, task_id: str) -> Task:
        task = await self._stores.task_store.get_task(actor.tenant_id, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _require_visible(self, actor: Actor, task: Task) -> None:
        scope = await build_scope(actor, self._teams)
        if not scope.can_see(task):
            raise PermissionDeniedError(f"{actor.email} cannot view task {task.task_id}")

    @staticmethod
    def _require_contributor(actor: Actor, task: Task) -> None:
        if (
            actor.email in task.assignee_emails
            or actor.email == task.creator_email
            or is_admin(actor)
        ):
            return
        raise PermissionDeniedError(
            f"{actor.email} is not allowed to contribute to task {task.task_id}"
        )

    @staticmethod
    def _validate_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise TaskValidationError("Title must not be empty")
        if len(title) > TITLE_MAX_LENGTH:
            raise TaskValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
        return title

    async def _publish(self, task: Task) -> None:
        if self._live_hub:
            await self._live_hub.publish(task.task_id, task_snapshot(task))

    @staticmethod
    def _is_task_seq_conflict(error: Exception) -> bool:
        if not isinstance(error, aiosqlite.IntegrityError):
            return False
        text = str(error)
        return (
            "idx_history_task_seq" in text
            or "task_history.task_id, task_history.task_seq" in text
        )

    async def _append_with_retry(
        self,
        task_id: str,
        entry_builder: EntryBuilder,
        writer: EntryWriter,
    ) -> HistoryEntry:
        """在写锁内构建条目并提交，task_seq 冲突时重试（不会重复应用变更）"""
        async with self._stores.write_lock:
            for attempt in range(1, self._max_task_seq_retries + 1):
                seq = await self._stores.history_store.get_next_task_seq(task_id)
                entry = entry_builder(seq)
                try:
                    await writer(entry)
                    return entry
                except aiosqlite.IntegrityError as e:
                    if self._is_task_seq_conflict(e) and attempt < self._max_task_seq_retries:
                        log.warning(
                            "task_seq_conflict_retry",
                            task_id=task_id,
                            attempt=attempt,
                        )
                        continue
                    raise

        raise RuntimeError("failed to append history entry after retries")
