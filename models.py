"""Shared SQLAlchemy models."""

from flask_login import UserMixin

from extensions import db

ROLE_ADMIN = "Administrator"
ROLE_USER = "NormalUser"
ALLOWED_ROLES = [ROLE_ADMIN, ROLE_USER]


def is_admin_role(role) -> bool:
    return role == ROLE_ADMIN


class User(UserMixin, db.Model):
    """Represents an application user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    username = db.Column(db.String(150), unique=True, nullable=False)
    password = db.Column(db.String(150), nullable=False)  # compared as-is, never hashed
    role = db.Column(db.String(50), nullable=False)  # Administrator, NormalUser

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "role": self.role}

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.username}>"


class StoreSlot(db.Model):
    """Single named value: the session record and the task id counter live here."""

    __tablename__ = "store_slots"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<StoreSlot {self.key}>"
