"""
Authentication over the store's single session slot.

LoggedOut -> LoggedIn on a successful login(); back to LoggedOut on logout()
or when the stored session no longer resolves to an existing user. A stale or
unreadable session is cleared on sight, so callers only ever see a valid user
or None.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from models import User, is_admin_role
from modules.tasks.rules import validate_login
from store import CorruptRecordError, Store, StoreError
from utils import log as activity_log


@dataclass
class SessionRecord:
    """Snapshot of the user taken at login time."""

    user_id: int
    username: str
    role: str
    created_at: str

    @classmethod
    def for_user(cls, user: User) -> "SessionRecord":
        return cls(
            user_id=user.id,
            username=user.username,
            role=user.role,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        try:
            return cls(
                user_id=int(data["user_id"]),
                username=str(data["username"]),
                role=str(data["role"]),
                created_at=str(data["created_at"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptRecordError(f"malformed session record: {exc}") from exc

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LoginResult:
    success: bool
    user: Optional[User]
    message: str

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "user": self.user.to_dict() if self.user else None,
            "message": self.message,
        }


class Auth:
    def __init__(self, store: Store, log: Callable[[str, str], None] = activity_log) -> None:
        self._store = store
        self._log = log

    def login(self, username, password) -> LoginResult:
        check = validate_login(username, password)
        if not check.valid:
            message = ", ".join(check.errors)
            self._log("error", f"Login rejected: {message}")
            return LoginResult(False, None, message)

        try:
            user = self._store.get_user_by_username(str(username).strip())
        except StoreError as exc:
            self._log("error", f"Login failed, user lookup unavailable: {exc}")
            return LoginResult(False, None, "Could not start the session")

        if user is None:
            self._log("error", f"Login failed, user not found: {username}")
            return LoginResult(False, None, "User not found")

        if user.password != password:
            self._log("error", f"Login failed, incorrect password for: {username}")
            return LoginResult(False, None, "Incorrect password")

        try:
            self._store.set_session(SessionRecord.for_user(user).to_dict())
        except StoreError as exc:
            self._log("error", f"Login failed, session not saved for {user.username}: {exc}")
            return LoginResult(False, None, "Could not start the session")

        self._log("success", f"Login: {user.username} ({user.role})")
        return LoginResult(True, user, f"Welcome, {user.username}")

    def logout(self) -> None:
        try:
            self._store.clear_session()
        except StoreError as exc:
            self._log("error", f"Logout could not clear the session: {exc}")
            return
        self._log("info", "Session closed")

    def current(self) -> Optional[SessionRecord]:
        """The stored session record, or None. Corrupt data is logged and cleared;
        an unreachable store is logged and treated as logged out."""
        try:
            raw = self._store.get_session()
            if raw is None:
                return None
            return SessionRecord.from_dict(raw)
        except CorruptRecordError as exc:
            self._log("error", f"Discarding unreadable session: {exc}")
            self.logout()
            return None
        except StoreError as exc:
            self._log("error", f"Session unavailable: {exc}")
            return None

    def get_current_user(self) -> Optional[User]:
        record = self.current()
        if record is None:
            return None

        try:
            user = self._store.get_user_by_id(record.user_id)
        except StoreError as exc:
            self._log("error", f"Session user {record.user_id} could not be loaded: {exc}")
            return None
        if user is None:
            self._log("warning", f"Session user {record.user_id} no longer exists; logging out")
            self.logout()
            return None
        return user

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None

    def is_admin(self) -> bool:
        user = self.get_current_user()
        return user is not None and is_admin_role(user.role)

    def can_modify_task(self, task) -> bool:
        user = self.get_current_user()
        if user is None:
            return False
        if is_admin_role(user.role):
            return True
        return task.assignee_id == user.id
