"""
Business rules for tasks: date arithmetic, validation, filtering and sorting.

Everything here is a plain function over plain values. Nothing touches the
database or the session; "today" is passed in (or defaults to date.today()).

- is_date_valid / is_overdue / days_remaining / format_date: dates
- validate_task / validate_login                           : input checks
- filter_tasks / sort_tasks                                : list helpers
"""
from __future__ import annotations

import locale
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from .models import ALLOWED_STATUSES, STATUS_COMPLETED, STATUS_PENDING

TITLE_MIN = 3
TITLE_MAX = 100
DUE_SOON_DAYS = 7
URGENT_DAYS = 2

SORT_KEYS = ("due_date", "title", "status")
SORT_DIRECTIONS = ("asc", "desc")


# ---------- Records ----------

@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


@dataclass
class TaskDraft:
    """Task input as it arrives from a form: every field optional, dates as text or date."""

    title: Optional[str] = None
    status: Optional[str] = None
    created_at: Any = None
    due_at: Any = None
    assignee_id: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaskDraft":
        return cls(
            title=data.get("title"),
            status=data.get("status") or None,
            created_at=data.get("created_at"),
            due_at=data.get("due_at"),
            assignee_id=data.get("assignee_id"),
        )

    def to_record(self) -> dict:
        """Column values for the store; call only on a draft that passed validate_task()."""
        record = {
            "title": self.title,
            "created_at": parse_date(self.created_at),
            "due_at": parse_date(self.due_at),
            "assignee_id": parse_user_id(self.assignee_id),
        }
        if self.status:
            record["status"] = self.status
        return record


@dataclass
class TaskFilter:
    """Independent optional predicates; the ones that are set are ANDed together."""

    status: Optional[str] = None
    assignee_id: Optional[int] = None
    overdue_only: bool = False
    search_text: Optional[str] = None


# ---------- Dates ----------

def parse_date(value) -> Optional[date]:
    """date / datetime / 'YYYY-MM-DD' → date; anything else → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def parse_user_id(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def today_iso(today: Optional[date] = None) -> str:
    return _today(today).isoformat()


def is_date_valid(created_at, due_at) -> bool:
    """The due date may not fall before the creation date."""
    created, due = parse_date(created_at), parse_date(due_at)
    if created is None or due is None:
        return False
    return due >= created


def days_remaining(value, today: Optional[date] = None) -> Optional[int]:
    """Whole calendar days from today to ``value``: 0 today, negative once past.
    None when ``value`` is not a date."""
    d = parse_date(value)
    if d is None:
        return None
    return (d - _today(today)).days


def is_overdue(value, today: Optional[date] = None) -> bool:
    days = days_remaining(value, today)
    return days is not None and days < 0


def urgency(task, today: Optional[date] = None) -> str:
    if task.status == STATUS_COMPLETED:
        return ""
    days = days_remaining(task.due_at, today)
    if days is None:
        return ""
    if days < 0:
        return "overdue"
    if days <= URGENT_DAYS:
        return "urgent"
    if days <= DUE_SOON_DAYS:
        return "soon"
    return ""


def format_date(value, mode: str = "short", today: Optional[date] = None) -> str:
    d = parse_date(value)
    if d is None:
        return ""

    if mode == "relative":
        days = days_remaining(d, today)
        if days < 0:
            n = abs(days)
            return f"Overdue by {n} day{'s' if n != 1 else ''}"
        if days == 0:
            return "Due today"
        if days == 1:
            return "Due tomorrow"
        if days <= DUE_SOON_DAYS:
            return f"Due in {days} days"
        return format_date(d, "short")

    if mode == "long":
        return f"{d.day} {d.strftime('%B %Y')}"
    return d.strftime("%d/%m/%Y")


# ---------- Validation ----------

def validate_task(draft: TaskDraft) -> ValidationResult:
    """Run every check and collect all messages; nothing short-circuits."""
    errors: list[str] = []

    title = str(draft.title).strip() if draft.title is not None else ""
    if not title:
        errors.append("Title is required")
    elif len(title) < TITLE_MIN:
        errors.append(f"Title is too short (minimum {TITLE_MIN} characters)")
    elif len(title) > TITLE_MAX:
        errors.append(f"Title is too long (maximum {TITLE_MAX} characters)")

    if draft.status and draft.status not in ALLOWED_STATUSES:
        errors.append(f"Invalid status (must be {STATUS_PENDING} or {STATUS_COMPLETED})")

    created = parse_date(draft.created_at)
    due = parse_date(draft.due_at)

    if draft.created_at in (None, ""):
        errors.append("Creation date is required")
    elif created is None:
        errors.append("Creation date is not a valid date")

    if draft.due_at in (None, ""):
        errors.append("Due date is required")
    elif due is None:
        errors.append("Due date is not a valid date")

    if created is not None and due is not None and not is_date_valid(created, due):
        errors.append("Due date cannot be earlier than the creation date")

    if draft.assignee_id in (None, "", 0):
        errors.append("Task must be assigned to a user")
    elif parse_user_id(draft.assignee_id) is None:
        errors.append("Assignee must be a user id")

    return ValidationResult(valid=not errors, errors=errors)


def validate_login(username, password) -> ValidationResult:
    errors: list[str] = []
    if not username or not str(username).strip():
        errors.append("Username is required")
    if not password or not str(password).strip():
        errors.append("Password is required")
    return ValidationResult(valid=not errors, errors=errors)


# ---------- Filtering / sorting ----------

def filter_tasks(tasks: Iterable, criteria: Optional[TaskFilter] = None, today: Optional[date] = None) -> list:
    result = list(tasks)
    if criteria is None:
        return result

    if criteria.status:
        result = [t for t in result if t.status == criteria.status]

    if criteria.assignee_id:
        result = [t for t in result if t.assignee_id == criteria.assignee_id]

    if criteria.overdue_only:
        result = [t for t in result if t.status == STATUS_PENDING and is_overdue(t.due_at, today)]

    if criteria.search_text:
        needle = criteria.search_text.lower()
        result = [t for t in result if needle in (t.title or "").lower()]

    return result


def _text_key(value) -> tuple:
    """Collation key: accents and case are ignored first, then break ties."""
    text = value or ""
    folded = "".join(c for c in unicodedata.normalize("NFKD", text.casefold())
                     if not unicodedata.combining(c))
    return locale.strxfrm(folded), locale.strxfrm(text), text


def sort_tasks(tasks: Iterable, key: str = "due_date", direction: str = "asc") -> list:
    """Stable sort by due date, title or status; an unknown key keeps the input order."""
    items = list(tasks)
    if key == "due_date":
        sort_key = lambda t: parse_date(t.due_at) or date.max  # noqa: E731
    elif key == "title":
        sort_key = lambda t: _text_key(t.title)  # noqa: E731
    elif key == "status":
        sort_key = lambda t: _text_key(t.status)  # noqa: E731
    else:
        return items
    return sorted(items, key=sort_key, reverse=(direction == "desc"))
