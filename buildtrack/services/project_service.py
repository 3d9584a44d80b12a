"""Project CRUD service. Projects are closed by status, never deleted."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from buildtrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from buildtrack.domain.dates import coerce_date
from buildtrack.models import db
from buildtrack.models.project import (
    CLOSED_PROJECT_STATUSES,
    FACTORY_CATALOG,
    FACTORY_CATALOG_VERSION,
    PROJECT_STATUSES,
    Project,
    normalize_factory,
)

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("name", "client_name", "building_type", "pm_name", "pm_email", "color", "notes")
_DATE_FIELDS = ("start_date", "target_offline_date", "delivery_date", "target_online_date")


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def list_projects(*, status: str | None = None, factory: str | None = None,
                  search: str | None = None, include_closed: bool = True):
    """Project query filtered by status / factory / free text, newest first."""
    q = Project.query
    if status:
        q = q.filter(Project.status == status)
    elif not include_closed:
        q = q.filter(Project.status.notin_(CLOSED_PROJECT_STATUSES))
    if factory:
        q = q.filter(Project.factory == (normalize_factory(factory) or factory))
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(db.or_(
            Project.name.ilike(term),
            Project.project_number.ilike(term),
            Project.client_name.ilike(term),
        ))
    return q.order_by(Project.created_at.desc(), Project.id.desc())


def factory_catalog() -> dict:
    return {
        "version": FACTORY_CATALOG_VERSION,
        "factories": [{"code": code, "name": name} for code, name in FACTORY_CATALOG.items()],
    }


def _apply(project: Project, data: dict):
    for attr in _TEXT_FIELDS:
        if attr in data:
            value = str(data.get(attr) or "").strip()
            if attr == "name" and not value:
                raise ValidationError("name cannot be empty", details={"name": "required"})
            if attr == "color":
                value = value or None
            setattr(project, attr, value)

    for attr in _DATE_FIELDS:
        if attr in data:
            raw = data.get(attr)
            parsed = coerce_date(raw)
            if raw not in (None, "") and parsed is None:
                raise ValidationError(f"{attr} must be an ISO date", details={attr: "invalid"})
            setattr(project, attr, parsed)

    if "status" in data:
        status = data.get("status")
        if status not in PROJECT_STATUSES:
            raise ValidationError(
                f"Invalid project status {status!r}",
                details={"status": "invalid", "allowed": list(PROJECT_STATUSES)},
            )
        project.status = status

    if "factory" in data:
        raw = data.get("factory")
        code = normalize_factory(raw)
        if raw and code is None:
            raise ValidationError(f"Unknown factory {raw!r}", details={"factory": "invalid"})
        project.factory = code

    if "module_count" in data:
        raw = data.get("module_count")
        try:
            project.module_count = int(raw) if raw not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise ValidationError("module_count must be an integer",
                                  details={"module_count": "invalid"}) from exc

    if "contract_value" in data:
        raw = data.get("contract_value")
        try:
            project.contract_value = Decimal(str(raw)) if raw not in (None, "") else None
        except InvalidOperation as exc:
            raise ValidationError("contract_value must be a number",
                                  details={"contract_value": "invalid"}) from exc


def _check_number_free(number: str, exclude_id: int | None = None):
    q = Project.query.filter(Project.project_number == number)
    if exclude_id is not None:
        q = q.filter(Project.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(resource="Project", field="project_number", value=number)


def create_project(data: dict) -> Project:
    number = str(data.get("project_number") or "").strip()
    _check_number_free(number)
    project = Project(project_number=number, status="Planning")
    _apply(project, data)
    db.session.add(project)
    db.session.flush()
    logger.info("Created project %s", project.project_number, extra={"project_id": project.id})
    return project


def update_project(project: Project, data: dict) -> Project:
    if "project_number" in data:
        number = str(data.get("project_number") or "").strip()
        if not number:
            raise ValidationError("project_number cannot be empty",
                                  details={"project_number": "required"})
        if number != project.project_number:
            _check_number_free(number, exclude_id=project.id)
            project.project_number = number
    _apply(project, data)
    db.session.flush()
    return project
