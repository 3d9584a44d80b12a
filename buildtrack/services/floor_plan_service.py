"""
Floor plan service.

Plans are uploaded once and soft-deleted (``is_active = False``); the stored
file and the plan's markers are kept. Markers pin an RFI, submittal or task
of the same project to a position on a plan page.
"""

from __future__ import annotations

import logging

from buildtrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from buildtrack.domain.statuses import RFI, SUBMITTAL, TASK
from buildtrack.models import db
from buildtrack.models.floor_plan import MARKER_ITEM_TYPES, FloorPlan, FloorPlanMarker
from buildtrack.models.work_items import MODELS_BY_TYPE
from buildtrack.services.storage import build_storage_path

logger = logging.getLogger(__name__)

FLOOR_PLAN_FOLDER = "floor-plans"

_MARKER_MODELS = {
    "rfi": MODELS_BY_TYPE[RFI],
    "submittal": MODELS_BY_TYPE[SUBMITTAL],
    "task": MODELS_BY_TYPE[TASK],
}


def get_floor_plan(plan_id: int) -> FloorPlan:
    plan = db.session.get(FloorPlan, plan_id)
    if plan is None:
        raise NotFoundError(resource="FloorPlan", resource_id=plan_id)
    return plan


def get_marker(marker_id: int) -> FloorPlanMarker:
    marker = db.session.get(FloorPlanMarker, marker_id)
    if marker is None:
        raise NotFoundError(resource="FloorPlanMarker", resource_id=marker_id)
    return marker


def list_floor_plans(project, include_inactive=False) -> list[FloorPlan]:
    q = FloorPlan.query.filter_by(project_id=project.id)
    if not include_inactive:
        q = q.filter(FloorPlan.is_active.is_(True))
    return q.order_by(FloorPlan.created_at.desc(), FloorPlan.id.desc()).all()


def upload_floor_plan(project, upload, storage, name=None, page_count=1, uploaded_by=""):
    """Store the plan file and insert its row. Storage failures propagate."""
    try:
        page_count = max(int(page_count or 1), 1)
    except (TypeError, ValueError) as exc:
        raise ValidationError("page_count must be an integer",
                              details={"page_count": "invalid"}) from exc

    file_name = upload.filename or "floor-plan.pdf"
    path = build_storage_path(project.id, FLOOR_PLAN_FOLDER, file_name)
    data = upload.read()
    public_url = storage.upload(path, data, upload.mimetype)

    plan = FloorPlan(
        project_id=project.id,
        name=(name or "").strip() or file_name,
        storage_path=path,
        public_url=public_url,
        file_type=upload.mimetype or "application/pdf",
        file_size=len(data),
        page_count=page_count,
        uploaded_by=uploaded_by or "",
    )
    db.session.add(plan)
    db.session.flush()
    logger.info("Floor plan %s uploaded to project %s", plan.id, project.id,
                extra={"project_id": project.id, "storage_path": path})
    return plan


def deactivate_floor_plan(plan: FloorPlan) -> FloorPlan:
    plan.is_active = False
    db.session.flush()
    return plan


# ── Markers ─────────────────────────────────────────────────────────────────

def _percent(data, field, required):
    raw = data.get(field)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{field} is required", details={field: "required"})
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number", details={field: "invalid"}) from exc
    if not 0 <= value <= 100:
        raise ValidationError(f"{field} must be between 0 and 100", details={field: "range"})
    return value


def _page(plan, data):
    try:
        page = int(data.get("page_number") or 1)
    except (TypeError, ValueError) as exc:
        raise ValidationError("page_number must be an integer",
                              details={"page_number": "invalid"}) from exc
    if not 1 <= page <= (plan.page_count or 1):
        raise ValidationError(f"page_number must be between 1 and {plan.page_count}",
                              details={"page_number": "range"})
    return page


def _check_target(plan, item_type, item_id):
    if item_type not in MARKER_ITEM_TYPES:
        raise ValidationError(
            f"item_type must be one of {', '.join(MARKER_ITEM_TYPES)}",
            details={"item_type": "invalid"},
        )
    try:
        item_id = int(item_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError("item_id must be an integer", details={"item_id": "invalid"}) from exc
    item = db.session.get(_MARKER_MODELS[item_type], item_id)
    if item is None or item.project_id != plan.project_id:
        raise NotFoundError(resource=item_type, resource_id=item_id)
    return item_id


def add_marker(plan: FloorPlan, data: dict, created_by="") -> FloorPlanMarker:
    if not plan.is_active:
        raise ConflictError(resource="FloorPlan", field="is_active", value="False")
    item_type = data.get("item_type")
    item_id = _check_target(plan, item_type, data.get("item_id"))
    marker = FloorPlanMarker(
        floor_plan_id=plan.id,
        item_type=item_type,
        item_id=item_id,
        x_percent=_percent(data, "x_percent", required=True),
        y_percent=_percent(data, "y_percent", required=True),
        page_number=_page(plan, data),
        label=(data.get("label") or "").strip(),
        created_by=created_by or "",
    )
    db.session.add(marker)
    db.session.flush()
    return marker


def update_marker(marker: FloorPlanMarker, data: dict) -> FloorPlanMarker:
    """Move or relabel a marker; its target item is fixed."""
    for field in ("x_percent", "y_percent"):
        if field in data:
            setattr(marker, field, _percent(data, field, required=True))
    if "page_number" in data:
        marker.page_number = _page(marker.floor_plan, data)
    if "label" in data:
        marker.label = (data.get("label") or "").strip()
    db.session.flush()
    return marker


def delete_marker(marker: FloorPlanMarker):
    db.session.delete(marker)
    db.session.flush()


def markers_for_item(item_type: str, item_id: int) -> list[dict]:
    """Markers pointing at one item on active plans, with the plan name."""
    rows = (
        db.session.query(FloorPlanMarker, FloorPlan)
        .join(FloorPlan, FloorPlan.id == FloorPlanMarker.floor_plan_id)
        .filter(
            FloorPlanMarker.item_type == item_type,
            FloorPlanMarker.item_id == item_id,
            FloorPlan.is_active.is_(True),
        )
        .order_by(FloorPlanMarker.id)
        .all()
    )
    return [{**marker.to_dict(), "floor_plan_name": plan.name} for marker, plan in rows]
