# tests/conftest.py
import os
import sys
from datetime import date

import pytest

# so that `import app` works when pytest runs from the repository root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app  # noqa: E402
from auth import Auth  # noqa: E402
from extensions import db  # noqa: E402
from modules.tasks.service import TaskService  # noqa: E402
from store import Store  # noqa: E402

# Fixed "today" for every date-dependent assertion. Against the seed data:
#   task 1 Completed due 2026-01-20
#   task 2 Pending   due 2026-02-01  (overdue by 7)
#   task 3 Pending   due 2026-02-10  (due in 2)
#   task 4 Pending   due 2026-01-25  (overdue by 14)
#   task 5 Pending   due 2026-02-20  (due in 12)
TODAY = date(2026, 2, 8)


class RecordingLog:
    """Stands in for utils.log and remembers every (level, message)."""

    def __init__(self):
        self.entries = []

    def __call__(self, level, message):
        self.entries.append((level, message))

    def levels(self):
        return [level for level, _ in self.entries]


@pytest.fixture()
def activity():
    return RecordingLog()


@pytest.fixture()
def app(activity):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "SEED_ON_STARTUP": False,
    })
    store = Store(db, clock=lambda: TODAY, log=activity)
    auth = Auth(store, log=activity)
    app.extensions["store"] = store
    app.extensions["auth"] = auth
    app.extensions["task_service"] = TaskService(store, auth, log=activity, clock=lambda: TODAY)
    with app.app_context():
        store.initialize()
    return app


@pytest.fixture()
def ctx(app):
    """Application context for tests that talk to the store directly (not through the client)."""
    with app.app_context():
        yield


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app, ctx):
    return app.extensions["store"]


@pytest.fixture()
def auth(app, ctx):
    return app.extensions["auth"]


@pytest.fixture()
def service(app, ctx):
    return app.extensions["task_service"]


@pytest.fixture()
def as_admin(auth):
    assert auth.login("Admin_Jefe", "admin123").success
    return auth.get_current_user()


@pytest.fixture()
def as_dev(auth):
    assert auth.login("Dev_Junior", "hola123").success
    return auth.get_current_user()
