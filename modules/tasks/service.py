"""
Task operations as seen by the logged-in user.

Administrators see and modify every task; normal users see and modify only
the tasks assigned to them. Not-found and forbidden both come back as False,
on purpose the caller cannot tell them apart.

Events (task-created / task-updated / task-deleted) are sent synchronously,
after the store write has been committed and before the call returns.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Mapping, Optional, Union

from blinker import Namespace

from models import is_admin_role
from store import StoreError
from utils import log as activity_log

from .models import STATUS_COMPLETED, STATUS_PENDING, Task
from .rules import (
    DUE_SOON_DAYS,
    TaskDraft,
    TaskFilter,
    days_remaining,
    filter_tasks,
    sort_tasks,
    validate_task,
)

logger = logging.getLogger(__name__)

task_signals = Namespace()
task_created = task_signals.signal("task-created")
task_updated = task_signals.signal("task-updated")
task_deleted = task_signals.signal("task-deleted")

EVENTS = {
    "task-created": task_created,
    "task-updated": task_updated,
    "task-deleted": task_deleted,
}


@dataclass
class CreateResult:
    success: bool
    task: Optional[Task] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "task": self.task.to_dict() if self.task else None,
            "error": self.error,
        }


@dataclass
class TaskStatistics:
    total: int = 0
    pending: int = 0
    completed: int = 0
    overdue: int = 0
    due_soon: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "completed": self.completed,
            "overdue": self.overdue,
            "due_soon": self.due_soon,
        }


class TaskService:
    def __init__(self, store, auth, log: Callable[[str, str], None] = activity_log,
                 clock: Callable[[], date] = date.today) -> None:
        self._store = store
        self._auth = auth
        self._log = log
        self._clock = clock

    def today(self) -> date:
        return self._clock()

    # ---- events ----

    def subscribe(self, event: str, callback) -> None:
        """Call ``callback(service, **payload)`` whenever this service sends ``event``."""
        try:
            signal = EVENTS[event]
        except KeyError:
            raise ValueError(f"unknown event: {event}") from None
        signal.connect(callback, sender=self, weak=False)

    def _emit(self, signal, **payload) -> None:
        for receiver in signal.receivers_for(self):
            try:
                receiver(self, **payload)
            except Exception:
                logger.exception("Subscriber %r failed on %s", receiver, signal.name)
                self._log("error", f"A {signal.name} subscriber failed")

    # ---- reads ----

    def get_visible_tasks(self) -> list[Task]:
        user = self._auth.get_current_user()
        if user is None:
            self._log("warning", "No authenticated user; no tasks visible")
            return []

        try:
            if is_admin_role(user.role):
                tasks = self._store.list_tasks()
                self._log("info", f"Administrator: loaded {len(tasks)} tasks")
            else:
                tasks = self._store.list_tasks_by_assignee(user.id)
                self._log("info", f"User {user.username}: loaded {len(tasks)} own tasks")
        except StoreError as exc:
            self._log("error", f"Error loading tasks: {exc}")
            return []

        return sort_tasks(tasks, "due_date", "asc")

    def filter_tasks(self, criteria: Optional[TaskFilter] = None) -> list[Task]:
        return filter_tasks(self.get_visible_tasks(), criteria, today=self._clock())

    def get_statistics(self) -> TaskStatistics:
        tasks = self.get_visible_tasks()
        today = self._clock()

        stats = TaskStatistics(total=len(tasks))
        for task in tasks:
            if task.status == STATUS_COMPLETED:
                stats.completed += 1
                continue
            if task.status != STATUS_PENDING:
                continue
            stats.pending += 1
            days = days_remaining(task.due_at, today)
            if days is None:
                continue
            if days < 0:
                stats.overdue += 1
            elif days <= DUE_SOON_DAYS:
                stats.due_soon += 1
        return stats

    # ---- mutations ----

    def create_task(self, data: Union[TaskDraft, Mapping]) -> CreateResult:
        draft = data if isinstance(data, TaskDraft) else TaskDraft.from_mapping(data)

        check = validate_task(draft)
        if not check.valid:
            self._log("error", "Validation failed: " + ", ".join(check.errors))
            return CreateResult(False, error="\n".join(check.errors))

        user = self._auth.get_current_user()
        if user is None:
            self._log("warning", "Task creation attempted without a session")
            return CreateResult(False, error="You must be logged in to create tasks")

        record = draft.to_record()
        if not is_admin_role(user.role) and record["assignee_id"] != user.id:
            self._log("warning", f"{user.username} tried to assign a task to user "
                                 f"{record['assignee_id']}; assigning to self")
            record["assignee_id"] = user.id

        try:
            task = self._store.create_task(record)
        except StoreError as exc:
            self._log("error", f"Error creating task: {exc}")
            return CreateResult(False, error="Failed to save the task")

        self._log("success", f"Task created: {task.title}")
        self._emit(task_created, task=task)
        return CreateResult(True, task=task)

    def _modifiable(self, task_id, action: str) -> Optional[Task]:
        try:
            task = self._store.get_task_by_id(task_id)
        except StoreError as exc:
            self._log("error", f"Error loading task {task_id}: {exc}")
            return None
        if task is None:
            self._log("error", f"Task not found: {task_id}")
            return None
        if not self._auth.can_modify_task(task):
            self._log("warning", f"No permission to {action} task {task_id}")
            return None
        return task

    def toggle_status(self, task_id) -> bool:
        task = self._modifiable(task_id, "modify")
        if task is None:
            return False

        new_status = STATUS_COMPLETED if task.status == STATUS_PENDING else STATUS_PENDING
        try:
            updated = self._store.update_task(task_id, {"status": new_status})
        except StoreError as exc:
            self._log("error", f"Error updating task {task_id}: {exc}")
            return False
        if updated is None:
            return False

        self._log("success", f"Task {task_id} changed to: {new_status}")
        self._emit(task_updated, task=updated)
        return True

    def delete_task(self, task_id) -> bool:
        if self._modifiable(task_id, "delete") is None:
            return False

        try:
            deleted = self._store.delete_task(task_id)
        except StoreError as exc:
            self._log("error", f"Error deleting task {task_id}: {exc}")
            return False
        if not deleted:
            return False

        self._log("success", f"Task {task_id} deleted")
        self._emit(task_deleted, task_id=task_id)
        return True
