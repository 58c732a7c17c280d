"""SQLAlchemy models for the tasks domain."""

from extensions import db

STATUS_PENDING = "Pending"
STATUS_COMPLETED = "Completed"
ALLOWED_STATUSES = [STATUS_PENDING, STATUS_COMPLETED]

# Columns a patch may touch; the id is assigned by the store and never changes.
TASK_FIELDS = ("title", "status", "created_at", "due_at", "assignee_id")


class Task(db.Model):
    """A unit of work assigned to one user."""

    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    title = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(32), nullable=False, default=STATUS_PENDING)
    created_at = db.Column(db.Date, nullable=False)
    due_at = db.Column(db.Date, nullable=False)
    # plain integer: a task may outlive its assignee
    assignee_id = db.Column(db.Integer, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "assignee_id": self.assignee_id,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Task {self.id}: {self.title}>"
