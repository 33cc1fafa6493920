"""领域模型单元测试

测试内容：
1. Task 默认值、负责人与逾期判断
2. 标签逗号分隔输入
3. TaskFieldsUpdate 仅返回显式提供的字段
4. Notice 至少需要一种寻址方式
"""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError
from taskforce.core.models import (
    AssignmentType,
    Notice,
    Priority,
    Role,
    Task,
    TaskDraft,
    TaskFieldsUpdate,
    TaskStatus,
)


def _task(**overrides) -> Task:
    now = datetime.now(UTC)
    data = {
        "task_id": "01JTASK0000000000000000001",
        "tenant_id": "acme",
        "title": "Inventory check",
        "assignment_type": AssignmentType.INDIVIDUAL,
        "assignee_emails": ["alice@acme.com"],
        "creator_email": "boss@acme.com",
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Task(**data)


class TestTaskModel:
    def test_defaults(self):
        task = _task()
        assert task.status == TaskStatus.PENDING
        assert task.priority == Priority.MEDIUM
        assert task.category == "General"
        assert task.tags == []
        assert task.estimated_hours == 0.0
        assert task.pointers.latest_entry_id is None

    def test_lead_email_only_for_delegate(self):
        """Delegate 模式下 index 0 为负责人"""
        delegate = _task(
            assignment_type=AssignmentType.DELEGATE,
            assignee_emails=["dave@acme.com", "bob@acme.com"],
        )
        assert delegate.lead_email == "dave@acme.com"
        assert _task().lead_email is None

    def test_is_overdue(self):
        today = date(2026, 3, 10)
        assert _task(due_date=date(2026, 3, 9)).is_overdue(today) is True
        assert _task(due_date=date(2026, 3, 10)).is_overdue(today) is False
        assert _task(due_date=None).is_overdue(today) is False
        completed = _task(due_date=date(2026, 1, 1), status=TaskStatus.COMPLETED)
        assert completed.is_overdue(today) is False

    def test_negative_hours_rejected(self):
        with pytest.raises(ValidationError):
            _task(estimated_hours=-1)


class TestTaskDraft:
    def test_tags_split_from_comma_string(self):
        """逗号分隔字符串被拆分、去空白、丢弃空项"""
        draft = TaskDraft(title="x", tags=" urgent, ops ,, ")
        assert draft.tags == ["urgent", "ops"]

    def test_tags_list_trimmed(self):
        draft = TaskDraft(title="x", tags=["  a", "", "b "])
        assert draft.tags == ["a", "b"]

    def test_defaults(self):
        draft = TaskDraft(title="x")
        assert draft.assignment_type == AssignmentType.INDIVIDUAL
        assert draft.assignee_emails == []
        assert draft.team_id is None


class TestTaskFieldsUpdate:
    def test_only_explicit_fields(self):
        update = TaskFieldsUpdate(title="New", priority="High")
        assert update.provided_fields() == {"title": "New", "priority": Priority.HIGH}

    def test_due_date_can_be_cleared(self):
        """due_date 允许显式置空，其余字段的 None 视为未提供"""
        update = TaskFieldsUpdate.model_validate({"due_date": None, "title": None})
        assert update.provided_fields() == {"due_date": None}

    def test_tags_string_input(self):
        update = TaskFieldsUpdate(tags="a,b")
        assert update.provided_fields() == {"tags": ["a", "b"]}


class TestNotice:
    def test_requires_audience(self):
        with pytest.raises(ValidationError):
            Notice(tenant_id="acme", title="t", message="m")

    def test_role_addressed(self):
        notice = Notice(tenant_id="acme", title="t", message="m", target_role=Role.EMPLOYER)
        assert notice.target_email is None
        assert notice.target_role == Role.EMPLOYER
