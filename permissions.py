# permissions.py
"""
RBAC for the HTTP layer.
- role_required([...]): route decorator; Administrator always passes.
- has_role / is_admin: checks on the current request's user.

Roles:
- NormalUser: own tasks only (view, create for self, toggle, delete)
- Administrator: every task, any assignee, reports and export

Per-task permission (may this user touch this task?) is decided by
Auth.can_modify_task; this module only gates whole endpoints.
"""

from functools import wraps
from typing import Iterable, Set

from flask import jsonify
from flask_login import current_user, login_required

from models import ROLE_ADMIN


def role_required(allowed_roles: Iterable[str]):
    """
    Restrict a view to the given roles.
    Example:
        @role_required(["Administrator"])
        def report(): ...

    - Not logged in  → 401 (login_manager.unauthorized)
    - Wrong role     → 403 JSON
    """
    if isinstance(allowed_roles, str):
        allowed: Set[str] = {allowed_roles}
    else:
        allowed = set(allowed_roles or [])

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            role = getattr(current_user, "role", None)
            if role == ROLE_ADMIN or role in allowed:
                return view_func(*args, **kwargs)
            return jsonify(error="You do not have permission for this action."), 403

        return wrapped
    return decorator


def has_role(role: str) -> bool:
    """True if the current user has exactly this role."""
    return bool(current_user.is_authenticated and getattr(current_user, "role", None) == role)


def is_admin() -> bool:
    return has_role(ROLE_ADMIN)
