"""HTTP routes for the tasks domain."""

import io

from flask import current_app, jsonify, request, send_file
from flask_login import current_user, login_required
from openpyxl import Workbook

from models import ROLE_ADMIN
from permissions import is_admin, role_required
from utils import escape_html, truncate_text

from . import bp
from .rules import SORT_DIRECTIONS, SORT_KEYS, TaskFilter, format_date, parse_user_id, sort_tasks, today_iso, urgency

TASK_COLUMNS = ["ID", "Title", "Status", "Created", "Due", "Assignee"]


def _service():
    return current_app.extensions["task_service"]


def _store():
    return current_app.extensions["store"]


def _view(task, today):
    """Task as handed to the page: user text escaped, due date spelled out."""
    row = task.to_dict()
    row.update(
        title_html=escape_html(task.title),
        short_title_html=escape_html(truncate_text(task.title or "", 40)),
        due_label=format_date(task.due_at, "relative", today),
        due_date=format_date(task.due_at, "short"),
        urgency=urgency(task, today),
    )
    return row


def _flag(value) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@bp.route("/")
@login_required
def list_tasks():
    service = _service()
    criteria = TaskFilter(
        status=request.args.get("status") or None,
        assignee_id=parse_user_id(request.args.get("assignee_id")),
        overdue_only=_flag(request.args.get("overdue")),
        search_text=(request.args.get("q") or "").strip() or None,
    )
    tasks = service.filter_tasks(criteria)

    key = request.args.get("sort", "due_date")
    order = request.args.get("order", "asc")
    if key in SORT_KEYS and order in SORT_DIRECTIONS:
        tasks = sort_tasks(tasks, key, order)

    today = service.today()
    return jsonify(tasks=[_view(t, today) for t in tasks], count=len(tasks))


@bp.route("/", methods=["POST"])
@login_required
def create_task():
    data = dict(request.get_json(silent=True) or request.form.to_dict())
    data.setdefault("created_at", today_iso(_service().today()))
    # a normal user's form has no assignee picker: the task is theirs
    if not is_admin() and not data.get("assignee_id"):
        data["assignee_id"] = current_user.id

    result = _service().create_task(data)
    return jsonify(result.to_dict()), (201 if result.success else 400)


@bp.route("/<int:task_id>/toggle", methods=["POST"])
@login_required
def toggle_task(task_id: int):
    if not _service().toggle_status(task_id):
        return jsonify(success=False, error="Task not found or not yours to modify."), 404
    return jsonify(success=True)


@bp.route("/<int:task_id>/delete", methods=["POST"])
@login_required
def delete_task(task_id: int):
    if not _service().delete_task(task_id):
        return jsonify(success=False, error="Task not found or not yours to delete."), 404
    return jsonify(success=True)


@bp.route("/stats")
@login_required
def stats():
    return jsonify(_service().get_statistics().to_dict())


# ---------- Administrator reports ----------

@bp.route("/reports/by-due-date")
@role_required([ROLE_ADMIN])
def report_by_due_date():
    return jsonify(tasks=[t.to_dict() for t in _store().tasks_ordered_by_due_date()])


@bp.route("/reports/counts")
@role_required([ROLE_ADMIN])
def report_counts():
    return jsonify(rows=_store().task_counts_by_user_and_status())


@bp.route("/reports/overdue")
@role_required([ROLE_ADMIN])
def report_overdue():
    return jsonify(tasks=[t.to_dict() for t in _store().overdue_tasks()])


@bp.route("/export")
@role_required([ROLE_ADMIN])
def export():
    store = _store()
    usernames = {u.id: u.username for u in store.list_users()}

    wb = Workbook()
    ws = wb.active
    ws.title = "Tasks"
    ws.append(TASK_COLUMNS)
    for t in store.tasks_ordered_by_due_date():
        ws.append([t.id, t.title, t.status, t.created_at, t.due_at,
                   usernames.get(t.assignee_id, f"#{t.assignee_id}")])

    summary = wb.create_sheet("Summary")
    summary.append(["User", "Status", "Tasks"])
    for row in store.task_counts_by_user_and_status():
        summary.append([row["username"], row["status"], row["count"]])

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return send_file(
        buf,
        as_attachment=True,
        download_name="tasks.xlsx",
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
