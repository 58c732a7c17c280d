"""Accounts module package: login, logout and the current principal."""

from flask import Blueprint

bp = Blueprint("accounts", __name__, url_prefix="/auth")

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]
