"""
Work-item service: CRUD and status changes for tasks, RFIs, submittals and
milestones.

Functions flush but never commit; the blueprint owns the transaction
(``db_commit_or_error``). Rule violations raise ``ValidationError`` /
``ConflictError`` / ``NotFoundError`` from ``buildtrack.core.exceptions``.
"""

from __future__ import annotations

import logging
from datetime import date

from buildtrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from buildtrack.domain.dates import coerce_date
from buildtrack.domain.recipients import parse_recipient, recipient_columns
from buildtrack.domain.statuses import (
    DEFAULT_STATUS,
    MILESTONE,
    PRIORITY_LEVELS,
    RFI,
    STATUSES,
    SUBMITTAL,
    TASK,
    TERMINAL_STATUSES,
    is_valid_status,
    normalize_status,
)
from buildtrack.models import db
from buildtrack.models.work_items import (
    MODELS_BY_TYPE,
    SUBMITTAL_TYPES,
    Milestone,
    next_rfi_number,
    next_submittal_number,
)
from buildtrack.services.attachment_service import delete_owner_attachments

logger = logging.getLogger(__name__)

# URL segment -> item type
KIND_TO_TYPE = {
    "tasks": TASK,
    "rfis": RFI,
    "submittals": SUBMITTAL,
    "milestones": MILESTONE,
}

TITLE_FIELD = {
    TASK: "title",
    RFI: "subject",
    SUBMITTAL: "title",
    MILESTONE: "name",
}

LABELS = {
    TASK: "Task",
    RFI: "RFI",
    SUBMITTAL: "Submittal",
    MILESTONE: "Milestone",
}

# Plain text / enum fields each type accepts on create and update
_TEXT_FIELDS = {
    TASK: ("title", "description"),
    RFI: ("subject", "question", "answer"),
    SUBMITTAL: ("title", "description", "spec_section", "manufacturer"),
    MILESTONE: ("name", "description"),
}

_DATE_FIELDS = {
    TASK: ("due_date",),
    RFI: ("due_date", "date_sent"),
    SUBMITTAL: ("due_date", "date_submitted"),
    MILESTONE: ("due_date",),
}

# Date stamped when an item enters its terminal set, cleared when it leaves
_COMPLETION_FIELD = {
    TASK: "completed_date",
    RFI: "answered_date",
    SUBMITTAL: "approved_date",
    MILESTONE: "completed_date",
}


def item_type_for_kind(kind: str) -> str:
    try:
        return KIND_TO_TYPE[kind]
    except KeyError:
        raise NotFoundError(resource="Item kind", resource_id=kind) from None


def get_item(item_type: str, item_id: int):
    item = db.session.get(MODELS_BY_TYPE[item_type], item_id)
    if item is None:
        raise NotFoundError(resource=LABELS[item_type], resource_id=item_id)
    return item


def project_items(project, item_type: str) -> list:
    """All rows of one type for a project, oldest first."""
    model = MODELS_BY_TYPE[item_type]
    return model.query.filter_by(project_id=project.id).order_by(model.id).all()


def project_item_dicts(project, item_type: str) -> list[dict]:
    return [row.to_dict() for row in project_items(project, item_type)]


# ── Payload parsing ─────────────────────────────────────────────────────────

def recipient_payload(data: dict):
    """The ``recipient`` object of a payload.

    Older dashboard forms send flat fields instead (``is_external``,
    ``sent_to``, ``sent_to_email``, ``internal_owner_id``); those are folded
    into the same shape.
    """
    if "recipient" in data:
        return data.get("recipient")
    if "is_external" not in data:
        return None
    if data.get("is_external"):
        return {"kind": "external", "name": data.get("sent_to"), "email": data.get("sent_to_email")}
    return {"kind": "internal", "owner_id": data.get("internal_owner_id"),
            "name": data.get("sent_to")}


def _parse_date(data: dict, field: str):
    raw = data.get(field)
    if raw in (None, ""):
        return None
    parsed = coerce_date(raw)
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO date", details={field: "invalid"})
    return parsed


def _apply_fields(item, item_type: str, data: dict):
    for field in _TEXT_FIELDS[item_type]:
        if field in data:
            value = data.get(field)
            value = value.strip() if isinstance(value, str) else value
            if field == TITLE_FIELD[item_type] and not value:
                raise ValidationError(f"{field} cannot be empty", details={field: "required"})
            setattr(item, field, value or "")

    for field in _DATE_FIELDS[item_type]:
        if field in data:
            setattr(item, field, _parse_date(data, field))

    if "priority" in data:
        priority = data.get("priority") or "Medium"
        if priority not in PRIORITY_LEVELS:
            raise ValidationError(
                f"priority must be one of {', '.join(PRIORITY_LEVELS)}",
                details={"priority": "invalid"},
            )
        item.priority = priority

    if item_type == SUBMITTAL and "submittal_type" in data:
        submittal_type = data.get("submittal_type") or "Shop Drawings"
        if submittal_type not in SUBMITTAL_TYPES:
            raise ValidationError(f"Unknown submittal type {submittal_type!r}",
                                  details={"submittal_type": "invalid"})
        item.submittal_type = submittal_type

    if item_type == TASK and "internal_owner_id" in data:
        item.internal_owner_id = data.get("internal_owner_id")

    if item_type in (TASK, RFI):
        raw = recipient_payload(data)
        if raw is not None or "recipient" in data:
            for column, value in recipient_columns(parse_recipient(raw)).items():
                setattr(item, column, value)


# ── Status ──────────────────────────────────────────────────────────────────

def set_status(item, status, today=None):
    """Validate and apply a status, stamping or clearing the completion date.

    Legacy task statuses are rewritten to the canonical value first.
    Returns the stored status.
    """
    item_type = item.ITEM_TYPE
    status = normalize_status(item_type, status)
    if not is_valid_status(item_type, status):
        raise ValidationError(
            f"Invalid {LABELS[item_type]} status {status!r}",
            details={"status": "invalid", "allowed": list(STATUSES[item_type])},
        )

    previous = item.status
    item.status = status

    field = _COMPLETION_FIELD[item_type]
    terminal = TERMINAL_STATUSES[item_type]
    if status in terminal and previous not in terminal:
        if getattr(item, field) is None:
            setattr(item, field, today or date.today())
    elif status not in terminal and previous in terminal:
        setattr(item, field, None)
    return status


def change_status(item_type: str, item_id: int, status, today=None):
    item = get_item(item_type, item_id)
    previous = item.status
    set_status(item, status, today=today)
    db.session.flush()
    logger.info("%s %s status %s -> %s", LABELS[item_type], item_id, previous, item.status,
                extra={"item_type": item_type, "item_id": item_id})
    return item


# ── CRUD ────────────────────────────────────────────────────────────────────

def _check_unique_number(model, column_name, project, value, exclude_id=None):
    column = getattr(model, column_name)
    q = model.query.filter(model.project_id == project.id, column == value)
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(resource=model.__name__, field=column_name, value=value)


def create_item(project, item_type: str, data: dict, today=None):
    """Insert one work item from a full form payload.

    RFI and submittal numbers are generated per project unless the payload
    supplies one.
    """
    model = MODELS_BY_TYPE[item_type]

    # Numbers are resolved before the row exists so autoflush never sees a
    # half-built item.
    numbers = {}
    if item_type == RFI:
        number = (data.get("rfi_number") or "").strip() or next_rfi_number(project)
        _check_unique_number(model, "rfi_number", project, number)
        numbers["rfi_number"] = number
    elif item_type == SUBMITTAL:
        number = (data.get("submittal_number") or "").strip() or next_submittal_number(project)
        _check_unique_number(model, "submittal_number", project, number)
        numbers["submittal_number"] = number

    item = model(
        project_id=project.id,
        created_by=data.get("created_by") or "",
        status=DEFAULT_STATUS[item_type],
        priority="Medium",
        **numbers,
    )
    _apply_fields(item, item_type, data)

    if data.get("status"):
        set_status(item, data["status"], today=today)

    db.session.add(item)
    db.session.flush()
    logger.info("Created %s %s on project %s", LABELS[item_type], item.id, project.project_number,
                extra={"item_type": item_type, "item_id": item.id, "project_id": project.id})
    return item


def update_item(item, data: dict, today=None):
    item_type = item.ITEM_TYPE
    _apply_fields(item, item_type, data)

    if item_type == RFI and data.get("rfi_number") and data["rfi_number"] != item.rfi_number:
        _check_unique_number(type(item), "rfi_number", item.project, data["rfi_number"], item.id)
        item.rfi_number = data["rfi_number"]
    if (item_type == SUBMITTAL and data.get("submittal_number")
            and data["submittal_number"] != item.submittal_number):
        _check_unique_number(type(item), "submittal_number", item.project,
                             data["submittal_number"], item.id)
        item.submittal_number = data["submittal_number"]

    if "status" in data:
        set_status(item, data.get("status"), today=today)

    db.session.flush()
    return item


_OWNER_KEY = {
    TASK: "task_id",
    RFI: "rfi_id",
    SUBMITTAL: "submittal_id",
}


def delete_item(item, storage=None):
    """Hard delete. The item's attachments (rows and stored files) go first."""
    if item.ITEM_TYPE in _OWNER_KEY:
        delete_owner_attachments(_OWNER_KEY[item.ITEM_TYPE], item.id, storage)
    logger.info("Deleting %s %s", LABELS[item.ITEM_TYPE], item.id,
                extra={"item_type": item.ITEM_TYPE, "item_id": item.id})
    db.session.delete(item)
    db.session.flush()


def toggle_milestone(milestone: Milestone, today=None):
    """Flip a milestone between Completed and Not Started."""
    target = "Not Started" if milestone.is_completed else "Completed"
    set_status(milestone, target, today=today)
    db.session.flush()
    return milestone
