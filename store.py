"""
Store: the only owner of Users, Tasks, the session slot and the task id counter.

Pure persistence. No permissions and no validation happen here; callers
(Auth, TaskService) are responsible for both. Every mutating call commits
before returning, and a failed commit is rolled back and surfaced as
StoreError so nothing half-written is visible to the next call. A failed
read is surfaced as StoreError too.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import ALLOWED_ROLES, ROLE_ADMIN, ROLE_USER, StoreSlot, User
from modules.tasks.models import STATUS_COMPLETED, STATUS_PENDING, TASK_FIELDS, Task
from utils import log as activity_log

logger = logging.getLogger(__name__)

SESSION_SLOT = "session"
COUNTER_SLOT = "task_id_counter"

# ---------- Seed data (loaded once into an empty database) ----------
SEED_USERS = [
    {"id": 1, "username": "Admin_Jefe", "password": "admin123", "role": ROLE_ADMIN},
    {"id": 2, "username": "Dev_Junior", "password": "hola123", "role": ROLE_USER},
    {"id": 3, "username": "QA_Tester", "password": "test123", "role": ROLE_USER},
]

SEED_TASKS = [
    {"id": 1, "title": "Configurar Servidor", "status": STATUS_COMPLETED,
     "created_at": date(2026, 1, 15), "due_at": date(2026, 1, 20), "assignee_id": 1},
    {"id": 2, "title": "Diseñar Frontend", "status": STATUS_PENDING,
     "created_at": date(2026, 1, 20), "due_at": date(2026, 2, 1), "assignee_id": 2},
    {"id": 3, "title": "Crear API Rest", "status": STATUS_PENDING,
     "created_at": date(2026, 2, 5), "due_at": date(2026, 2, 10), "assignee_id": 2},
    {"id": 4, "title": "Pruebas Unitarias", "status": STATUS_PENDING,
     "created_at": date(2026, 1, 10), "due_at": date(2026, 1, 25), "assignee_id": 3},
    {"id": 5, "title": "Documentación Final", "status": STATUS_PENDING,
     "created_at": date(2026, 2, 6), "due_at": date(2026, 2, 20), "assignee_id": 1},
]


class StoreError(Exception):
    """The backing database rejected a read or write."""


class CorruptRecordError(StoreError):
    """A stored value could not be decoded."""


class Store:
    def __init__(self, database=None, clock: Callable[[], date] = date.today,
                 log: Callable[[str, str], None] = activity_log) -> None:
        self._db = database or db
        self._clock = clock
        self._log = log

    # ---- low-level helpers ----

    @property
    def _session(self):
        return self._db.session

    def _commit(self, what: str) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Store commit failed (%s)", what)
            raise StoreError(f"could not persist {what}") from exc

    @contextmanager
    def _reading(self, what: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Store read failed (%s)", what)
            raise StoreError(f"could not read {what}") from exc

    def _slot(self, key: str) -> Optional[StoreSlot]:
        with self._reading(f"slot {key}"):
            return self._session.get(StoreSlot, key)

    def _write_slot(self, key: str, value: str) -> None:
        slot = self._slot(key)
        if slot is None:
            self._session.add(StoreSlot(key=key, value=value))
        else:
            slot.value = value

    def _counter(self) -> int:
        slot = self._slot(COUNTER_SLOT)
        try:
            return int(slot.value) if slot else 0
        except ValueError:
            logger.warning("Task id counter is not a number (%r); recomputing", slot.value)
            with self._reading("task ids"):
                return self._session.query(func.max(Task.id)).scalar() or 0

    # ---- lifecycle ----

    def initialize(self) -> bool:
        """Seed users and tasks into an empty database. Returns True if seeding happened."""
        with self._reading("users"):
            seeded = self._session.query(User.id).first() is not None
        if seeded:
            logger.debug("Store already initialised")
            return False

        logger.info("Seeding %d users and %d tasks", len(SEED_USERS), len(SEED_TASKS))
        for row in SEED_USERS:
            self._session.add(User(**row))
        for row in SEED_TASKS:
            self._session.add(Task(**row))
        self._write_slot(COUNTER_SLOT, str(max(t["id"] for t in SEED_TASKS)))
        self._commit("seed data")
        return True

    def reset(self) -> None:
        """Drop every user, task and slot, then seed again."""
        with self._reading("store contents"):
            self._session.query(Task).delete()
            self._session.query(User).delete()
            self._session.query(StoreSlot).delete()
        self._commit("reset")
        logger.info("Store reset")
        self.initialize()

    # ---- Users ----

    def list_users(self) -> list[User]:
        with self._reading("users"):
            return self._session.query(User).order_by(User.id.asc()).all()

    def get_user_by_id(self, user_id) -> Optional[User]:
        if user_id is None:
            return None
        with self._reading(f"user {user_id}"):
            return self._session.get(User, user_id)

    def get_user_by_username(self, username) -> Optional[User]:
        if username is None:
            return None
        with self._reading("user by username"):
            return self._session.query(User).filter_by(username=username).first()

    def create_user(self, username: str, password: str, role: str) -> User:
        if role not in ALLOWED_ROLES:
            raise ValueError(f"unknown role: {role}")
        if self.get_user_by_username(username) is not None:
            raise ValueError(f"user '{username}' already exists")

        with self._reading("user ids"):
            next_id = (self._session.query(func.max(User.id)).scalar() or 0) + 1
        user = User(id=next_id, username=username, password=password, role=role)
        self._session.add(user)
        self._commit("user")
        self._log("success", f"User created: {username} ({role})")
        return user

    def delete_user(self, user_id) -> bool:
        """Remove a user. Their tasks stay, pointing at an id that no longer exists."""
        user = self.get_user_by_id(user_id)
        if user is None:
            return False
        username = user.username
        self._session.delete(user)
        self._commit("user deletion")
        self._log("success", f"User deleted: {username} (id {user_id})")
        return True

    # ---- Tasks ----

    def list_tasks(self) -> list[Task]:
        with self._reading("tasks"):
            return self._session.query(Task).order_by(Task.id.asc()).all()

    def get_task_by_id(self, task_id) -> Optional[Task]:
        if task_id is None:
            return None
        with self._reading(f"task {task_id}"):
            return self._session.get(Task, task_id)

    def list_tasks_by_assignee(self, user_id) -> list[Task]:
        with self._reading(f"tasks of user {user_id}"):
            return (self._session.query(Task)
                    .filter_by(assignee_id=user_id)
                    .order_by(Task.id.asc())
                    .all())

    def create_task(self, data: dict) -> Task:
        """Insert with id = counter + 1; the counter and the row are committed together."""
        next_id = self._counter() + 1
        task = Task(
            id=next_id,
            title=data.get("title"),
            status=data.get("status") or STATUS_PENDING,
            created_at=data.get("created_at"),
            due_at=data.get("due_at"),
            assignee_id=data.get("assignee_id"),
        )
        self._session.add(task)
        self._write_slot(COUNTER_SLOT, str(next_id))
        self._commit("task")
        logger.debug("Task created id=%s assignee=%s", task.id, task.assignee_id)
        return task

    def update_task(self, task_id, patch: dict) -> Optional[Task]:
        """Shallow-merge ``patch`` into the task. None if the id is unknown."""
        task = self.get_task_by_id(task_id)
        if task is None:
            logger.debug("update_task: no task id=%s", task_id)
            return None

        for name, value in patch.items():
            if name not in TASK_FIELDS:
                logger.warning("update_task: ignoring unknown field %r", name)
                continue
            setattr(task, name, value)

        self._commit("task update")
        return task

    def delete_task(self, task_id) -> bool:
        task = self.get_task_by_id(task_id)
        if task is None:
            logger.debug("delete_task: no task id=%s", task_id)
            return False
        self._session.delete(task)
        self._commit("task deletion")
        return True

    # ---- Derived queries ----

    def tasks_ordered_by_due_date(self) -> list[Task]:
        with self._reading("tasks by due date"):
            return self._session.query(Task).order_by(Task.due_at.asc(), Task.id.asc()).all()

    def task_counts_by_user_and_status(self) -> list[dict]:
        """One row per (username, status) with at least one task; tasks of missing users are skipped."""
        with self._reading("task counts"):
            rows = (self._session.query(User.username, Task.status, func.count(Task.id))
                    .join(User, User.id == Task.assignee_id)
                    .group_by(User.username, Task.status)
                    .order_by(User.username.asc(), Task.status.asc())
                    .all())
        return [{"username": username, "status": status, "count": int(count)}
                for username, status, count in rows]

    def overdue_tasks(self) -> list[Task]:
        with self._reading("overdue tasks"):
            return (self._session.query(Task)
                    .filter(Task.status == STATUS_PENDING, Task.due_at < self._clock())
                    .order_by(Task.due_at.asc(), Task.id.asc())
                    .all())

    # ---- Session slot ----

    def get_session(self) -> Optional[dict]:
        """Raw session record, or None. Raises CorruptRecordError if it cannot be decoded."""
        slot = self._slot(SESSION_SLOT)
        if slot is None:
            return None
        try:
            record = json.loads(slot.value)
        except ValueError as exc:
            raise CorruptRecordError("session record is not valid JSON") from exc
        if not isinstance(record, dict):
            raise CorruptRecordError("session record is not an object")
        return record

    def set_session(self, record: dict) -> None:
        self._write_slot(SESSION_SLOT, json.dumps(record, ensure_ascii=False))
        self._commit("session")

    def clear_session(self) -> None:
        slot = self._slot(SESSION_SLOT)
        if slot is None:
            return
        self._session.delete(slot)
        self._commit("session removal")

    # ---- Export ----

    def export_data(self) -> dict:
        try:
            session = self.get_session()
        except CorruptRecordError:
            session = None
        return {
            "users": [u.to_dict() for u in self.list_users()],
            "tasks": [t.to_dict() for t in self.list_tasks()],
            "session": session,
        }
