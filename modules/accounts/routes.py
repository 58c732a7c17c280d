"""HTTP routes for login, logout and the current principal."""

from flask import current_app, jsonify, request
from flask_login import current_user

from extensions import login_manager
from permissions import is_admin

from . import bp


def _auth():
    return current_app.extensions["auth"]


@login_manager.request_loader
def load_user_from_request(_request):
    """Every request acts as whoever holds the store's session slot."""
    return _auth().get_current_user()


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(error="Authentication required."), 401


def _credentials():
    data = request.get_json(silent=True) or request.form
    return data.get("username", ""), data.get("password", "")


@bp.route("/login", methods=["POST"])
def login():
    username, password = _credentials()
    result = _auth().login(username, password)
    return jsonify(result.to_dict()), (200 if result.success else 401)


@bp.route("/logout", methods=["POST"])
def logout():
    _auth().logout()
    return jsonify(success=True)


@bp.route("/me")
def me():
    if not current_user.is_authenticated:
        return jsonify(authenticated=False, user=None)
    return jsonify(authenticated=True, user=current_user.to_dict(), is_admin=is_admin())
