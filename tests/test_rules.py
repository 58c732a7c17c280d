"""Pure task rules: dates, validation, filtering, sorting."""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from modules.tasks.models import STATUS_COMPLETED, STATUS_PENDING
from modules.tasks.rules import (
    TaskDraft,
    TaskFilter,
    days_remaining,
    filter_tasks,
    format_date,
    is_date_valid,
    is_overdue,
    parse_date,
    sort_tasks,
    today_iso,
    urgency,
    validate_login,
    validate_task,
)

TODAY = date(2026, 2, 8)


def _task(id, title, status=STATUS_PENDING, due=TODAY, assignee=2):
    return SimpleNamespace(id=id, title=title, status=status, due_at=due, assignee_id=assignee)


def _draft(**overrides):
    values = dict(title="Review pull request", created_at="2026-02-08",
                  due_at="2026-02-10", assignee_id=2)
    values.update(overrides)
    return TaskDraft(**values)


# ---------- dates ----------

def test_days_remaining_around_today():
    assert days_remaining(TODAY, today=TODAY) == 0
    assert days_remaining(TODAY + timedelta(days=1), today=TODAY) == 1
    assert days_remaining(TODAY - timedelta(days=1), today=TODAY) == -1
    assert days_remaining("2026-02-20", today=TODAY) == 12


def test_is_overdue_is_strictly_before_today():
    assert is_overdue("2026-02-07", today=TODAY) is True
    assert is_overdue("2026-02-08", today=TODAY) is False


def test_is_date_valid():
    assert is_date_valid("2026-02-08", "2026-02-08") is True
    assert is_date_valid("2026-02-08", "2026-02-09") is True
    assert is_date_valid("2026-02-08", "2026-02-07") is False


def test_parse_date():
    assert parse_date("2026-02-08") == TODAY
    assert parse_date(TODAY) == TODAY
    assert parse_date("08/02/2026") is None
    assert parse_date("") is None


def test_today_iso():
    assert today_iso(TODAY) == "2026-02-08"


@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (-3, "Overdue by 3 days"),
        (-1, "Overdue by 1 day"),
        (0, "Due today"),
        (1, "Due tomorrow"),
        (2, "Due in 2 days"),
        (7, "Due in 7 days"),
        (8, "16/02/2026"),
    ],
)
def test_format_date_relative(offset, expected):
    assert format_date(TODAY + timedelta(days=offset), "relative", today=TODAY) == expected


def test_format_date_short_and_long():
    assert format_date("2026-02-08") == "08/02/2026"
    assert format_date("2026-02-08", "long") == "8 February 2026"


def test_urgency():
    assert urgency(_task(1, "x", due=TODAY - timedelta(days=1)), today=TODAY) == "overdue"
    assert urgency(_task(1, "x", due=TODAY + timedelta(days=2)), today=TODAY) == "urgent"
    assert urgency(_task(1, "x", due=TODAY + timedelta(days=5)), today=TODAY) == "soon"
    assert urgency(_task(1, "x", due=TODAY + timedelta(days=30)), today=TODAY) == ""
    assert urgency(_task(1, "x", status=STATUS_COMPLETED, due=TODAY - timedelta(days=9)), today=TODAY) == ""


# ---------- validation ----------

def test_valid_draft_passes():
    result = validate_task(_draft())
    assert result.valid is True
    assert result.errors == []


def test_title_length_bounds():
    short = validate_task(_draft(title="ab"))
    assert short.valid is False
    assert any("too short" in e for e in short.errors)

    long = validate_task(_draft(title="x" * 101))
    assert long.valid is False
    assert any("too long" in e for e in long.errors)

    assert validate_task(_draft(title="abc")).valid
    assert validate_task(_draft(title="x" * 100)).valid
    # length is measured after trimming
    assert not validate_task(_draft(title="  ab  ")).valid


def test_all_errors_are_collected():
    result = validate_task(TaskDraft())
    assert result.valid is False
    assert result.errors == [
        "Title is required",
        "Creation date is required",
        "Due date is required",
        "Task must be assigned to a user",
    ]


def test_status_and_dates_checked_together():
    result = validate_task(_draft(status="Archived", created_at="2026-02-10", due_at="2026-02-01"))
    assert result.errors == [
        "Invalid status (must be Pending or Completed)",
        "Due date cannot be earlier than the creation date",
    ]


def test_invalid_date_text_and_assignee():
    result = validate_task(_draft(due_at="tomorrow", assignee_id="bob"))
    assert "Due date is not a valid date" in result.errors
    assert "Assignee must be a user id" in result.errors


def test_draft_from_mapping_to_record():
    draft = TaskDraft.from_mapping({"title": "Deploy", "created_at": "2026-02-08",
                                    "due_at": "2026-02-09", "assignee_id": "3", "status": ""})
    assert draft.status is None
    assert draft.to_record() == {
        "title": "Deploy",
        "created_at": date(2026, 2, 8),
        "due_at": date(2026, 2, 9),
        "assignee_id": 3,
    }


def test_validate_login():
    assert validate_login("Admin_Jefe", "admin123").valid
    result = validate_login("   ", "")
    assert result.valid is False
    assert result.errors == ["Username is required", "Password is required"]


# ---------- filtering / sorting ----------

TASKS = [
    _task(1, "Configurar Servidor", STATUS_COMPLETED, date(2026, 1, 20), 1),
    _task(2, "Diseñar Frontend", STATUS_PENDING, date(2026, 2, 1), 2),
    _task(3, "Crear API Rest", STATUS_PENDING, date(2026, 2, 10), 2),
    _task(4, "Pruebas Unitarias", STATUS_PENDING, date(2026, 1, 25), 3),
]


def test_search_text_is_case_insensitive():
    result = filter_tasks(TASKS, TaskFilter(search_text="api"))
    assert [t.id for t in result] == [3]


def test_filters_combine_with_and():
    assert [t.id for t in filter_tasks(TASKS, TaskFilter(status=STATUS_PENDING))] == [2, 3, 4]
    assert [t.id for t in filter_tasks(TASKS, TaskFilter(assignee_id=2))] == [2, 3]
    assert [t.id for t in filter_tasks(TASKS, TaskFilter(overdue_only=True), today=TODAY)] == [2, 4]
    combined = TaskFilter(assignee_id=2, overdue_only=True, search_text="front")
    assert [t.id for t in filter_tasks(TASKS, combined, today=TODAY)] == [2]


def test_no_criteria_returns_copy():
    result = filter_tasks(TASKS, TaskFilter())
    assert result == TASKS
    assert result is not TASKS
    assert filter_tasks(TASKS, None) == TASKS


def test_sort_by_due_date():
    assert [t.id for t in sort_tasks(TASKS)] == [1, 4, 2, 3]
    assert [t.id for t in sort_tasks(TASKS, "due_date", "desc")] == [3, 2, 4, 1]


def test_sort_by_title():
    tasks = [_task(1, "beta"), _task(2, "alpha"), _task(3, "gamma")]
    assert [t.id for t in sort_tasks(tasks, "title", "asc")] == [2, 1, 3]
    assert [t.id for t in sort_tasks(tasks, "title", "desc")] == [3, 1, 2]


def test_sort_is_stable():
    tasks = [_task(1, "a", STATUS_PENDING), _task(2, "b", STATUS_COMPLETED), _task(3, "c", STATUS_PENDING)]
    assert [t.id for t in sort_tasks(tasks, "status", "asc")] == [2, 1, 3]


def test_unknown_sort_key_keeps_order():
    assert [t.id for t in sort_tasks(TASKS, "priority")] == [1, 2, 3, 4]


def test_sort_by_title_ignores_case_and_accents():
    tasks = [_task(1, "beta"), _task(2, "Alpha"), _task(3, "alpha2"), _task(4, "Zeta"), _task(5, "Édition")]
    titles = [t.title for t in sort_tasks(tasks, "title", "asc")]
    assert titles == ["Alpha", "alpha2", "beta", "Édition", "Zeta"]


def test_unparseable_due_date():
    assert days_remaining("not-a-date", today=TODAY) is None
    assert days_remaining(None, today=TODAY) is None
    assert is_overdue("not-a-date", today=TODAY) is False
    assert urgency(_task(1, "Broken", due="31/02/2026"), today=TODAY) == ""
    assert format_date("not-a-date", "relative", today=TODAY) == ""
    assert filter_tasks([_task(1, "Broken", due="soon")], TaskFilter(overdue_only=True), today=TODAY) == []
