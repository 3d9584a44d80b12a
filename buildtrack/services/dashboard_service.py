"""
Dashboard read models.

Loads a fresh snapshot of rows, turns them into plain dicts and hands them
to the pure aggregators in ``buildtrack.domain``. Nothing here is cached;
every request recomputes from the store.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from buildtrack.domain.attention import collect_attention_items
from buildtrack.domain.calendar import build_calendar_items, build_view
from buildtrack.domain.dates import coerce_date, relative_time
from buildtrack.domain.filters import summarize
from buildtrack.domain.health import compute_health_score
from buildtrack.domain.kanban import KanbanBoard
from buildtrack.domain.key_dates import build_key_dates, key_dates_progress
from buildtrack.domain.statuses import MILESTONE, RFI, SUBMITTAL, TASK, normalize_status
from buildtrack.models import db
from buildtrack.models.project import CLOSED_PROJECT_STATUSES, Project
from buildtrack.models.work_items import MODELS_BY_TYPE
from buildtrack.services.work_item_service import change_status, project_item_dicts

logger = logging.getLogger(__name__)

CALENDAR_VIEWS = ("week", "workweek", "month")


def project_snapshot(project) -> dict:
    return {
        "tasks": project_item_dicts(project, TASK),
        "rfis": project_item_dicts(project, RFI),
        "submittals": project_item_dicts(project, SUBMITTAL),
        "milestones": project_item_dicts(project, MILESTONE),
    }


def _recent_activity(snapshot, today, limit=8):
    """Most recently touched items with a relative "updated" label."""
    rows = []
    for key in ("tasks", "rfis", "submittals", "milestones"):
        rows.extend(snapshot[key])
    rows.sort(key=lambda r: r.get("updated_at") or "", reverse=True)
    return [
        {
            "type": r["item_type"],
            "id": r["id"],
            "title": r.get("title"),
            "status": r.get("status"),
            "updated": relative_time(r.get("updated_at"), today),
        }
        for r in rows[:limit]
    ]


def project_overview(project, today=None) -> dict:
    """Everything the project overview tab renders in one payload."""
    snapshot = project_snapshot(project)
    tasks, rfis = snapshot["tasks"], snapshot["rfis"]
    submittals, milestones = snapshot["submittals"], snapshot["milestones"]

    attention = collect_attention_items(tasks, rfis, submittals, today=today)
    key_dates = build_key_dates(project.to_dict(), milestones, today=today)
    return {
        "project": project.to_dict(),
        "health": compute_health_score(tasks, rfis, submittals, milestones, today=today),
        "attention": attention,
        "all_clear": not attention,
        "key_dates": key_dates,
        "key_dates_progress": key_dates_progress(key_dates),
        "counts": {
            "tasks": summarize(tasks, TASK, today),
            "rfis": summarize(rfis, RFI, today),
            "submittals": summarize(submittals, SUBMITTAL, today),
            "milestones": summarize(milestones, MILESTONE, today),
        },
        "recent_activity": _recent_activity(snapshot, today),
    }


# ── Calendar ────────────────────────────────────────────────────────────────

def _rows(model, project_ids):
    q = model.query
    if project_ids is not None:
        q = q.filter(model.project_id.in_(project_ids))
    return [row.to_dict() for row in q.order_by(model.id).all()]


def calendar_view(ref=None, view="week", project_id=None) -> dict:
    """Calendar buckets for one screen across all open projects (or one)."""
    q = Project.query
    if project_id is not None:
        q = q.filter(Project.id == project_id)
    else:
        q = q.filter(Project.status.notin_(CLOSED_PROJECT_STATUSES))
    projects = [p.to_dict() for p in q.order_by(Project.id).all()]
    ids = [p["id"] for p in projects]

    items = build_calendar_items(
        projects,
        _rows(MODELS_BY_TYPE[TASK], ids),
        _rows(MODELS_BY_TYPE[RFI], ids),
        _rows(MODELS_BY_TYPE[SUBMITTAL], ids),
        _rows(MODELS_BY_TYPE[MILESTONE], ids),
    )
    result = build_view(items, coerce_date(ref) or date.today(), view)
    result["projects"] = [
        {"id": p["id"], "name": p["name"], "project_number": p["project_number"]}
        for p in projects
    ]
    return result


# ── Kanban ──────────────────────────────────────────────────────────────────

def _persist_status(item_type):
    """Store capability handed to the board: one committed status write."""

    def update_status(item_id, new_status):
        try:
            change_status(item_type, item_id, new_status)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Board status write failed for %s %s", item_type, item_id)
            raise

    return update_status


def load_board(project, item_type, update_status=None) -> KanbanBoard:
    return KanbanBoard(
        project_item_dicts(project, item_type),
        item_type,
        update_status or _persist_status(item_type),
    )


def move_on_board(project, item_type, item_id, target_status, update_status=None) -> dict:
    """Apply one drag-and-drop move; ``MoveFailedError`` carries the reverted board."""
    board = load_board(project, item_type, update_status)
    moved = board.move(item_id, normalize_status(item_type, target_status))
    return {"moved": moved, "columns": board.columns()}
