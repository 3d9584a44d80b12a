"""Factory production: modules per project and their QC inspections."""

from __future__ import annotations

import logging

from sqlalchemy import func

from buildtrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from buildtrack.domain.dates import coerce_date
from buildtrack.models import db
from buildtrack.models.production import MODULE_STATUSES, Module, QCRecord

logger = logging.getLogger(__name__)


def get_module(module_id: int) -> Module:
    module = db.session.get(Module, module_id)
    if module is None:
        raise NotFoundError(resource="Module", resource_id=module_id)
    return module


def list_modules(project, status=None) -> list[Module]:
    q = Module.query.filter_by(project_id=project.id)
    if status:
        q = q.filter(Module.status == status)
    return q.order_by(Module.serial_number).all()


def _date(data, field):
    raw = data.get(field)
    parsed = coerce_date(raw)
    if raw not in (None, "") and parsed is None:
        raise ValidationError(f"{field} must be an ISO date", details={field: "invalid"})
    return parsed


def create_module(project, data: dict) -> Module:
    serial = str(data.get("serial_number") or "").strip()
    if Module.query.filter_by(serial_number=serial).first() is not None:
        raise ConflictError(resource="Module", field="serial_number", value=serial)
    status = data.get("status") or "Not Started"
    if status not in MODULE_STATUSES:
        raise ValidationError(f"Invalid module status {status!r}",
                              details={"status": "invalid", "allowed": list(MODULE_STATUSES)})
    module = Module(
        project_id=project.id,
        serial_number=serial,
        building_section=(data.get("building_section") or "").strip(),
        status=status,
        station=(data.get("station") or "").strip(),
        scheduled_start=_date(data, "scheduled_start"),
        scheduled_end=_date(data, "scheduled_end"),
    )
    db.session.add(module)
    db.session.flush()
    return module


def update_module(module: Module, data: dict) -> Module:
    if "status" in data:
        if data["status"] not in MODULE_STATUSES:
            raise ValidationError(f"Invalid module status {data['status']!r}",
                                  details={"status": "invalid", "allowed": list(MODULE_STATUSES)})
        module.status = data["status"]
    for field in ("building_section", "station"):
        if field in data:
            setattr(module, field, (data.get(field) or "").strip())
    for field in ("scheduled_start", "scheduled_end"):
        if field in data:
            setattr(module, field, _date(data, field))
    db.session.flush()
    return module


def record_qc(module: Module, data: dict) -> QCRecord:
    """Log one inspection. A failed inspection puts the module on QC Hold."""
    try:
        defects = int(data.get("defects_found") or 0)
    except (TypeError, ValueError) as exc:
        raise ValidationError("defects_found must be an integer",
                              details={"defects_found": "invalid"}) from exc
    if defects < 0:
        raise ValidationError("defects_found cannot be negative", details={"defects_found": "range"})

    passed = bool(data.get("passed", True))
    record = QCRecord(
        module_id=module.id,
        inspector=(data.get("inspector") or "").strip(),
        station=(data.get("station") or module.station or "").strip(),
        passed=passed,
        defects_found=defects,
        notes=data.get("notes") or "",
    )
    if not passed and module.status not in ("Completed", "Shipped"):
        module.status = "QC Hold"
    db.session.add(record)
    db.session.flush()
    logger.info("QC %s for module %s (%d defects)", "pass" if passed else "fail",
                module.serial_number, defects, extra={"project_id": module.project_id})
    return record


def qc_summary(project) -> dict:
    """Inspection totals and pass rate (percent, one decimal) for a project."""
    total, passed, defects = (
        db.session.query(
            func.count(QCRecord.id),
            func.coalesce(func.sum(db.case((QCRecord.passed.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(QCRecord.defects_found), 0),
        )
        .join(Module, Module.id == QCRecord.module_id)
        .filter(Module.project_id == project.id)
        .one()
    )
    total, passed, defects = int(total or 0), int(passed or 0), int(defects or 0)
    modules = Module.query.filter_by(project_id=project.id)
    return {
        "project_id": project.id,
        "modules": modules.count(),
        "modules_on_hold": modules.filter(Module.status == "QC Hold").count(),
        "inspections": total,
        "passed": passed,
        "failed": total - passed,
        "pass_rate": round(passed / total * 100, 1) if total else 0.0,
        "defects": defects,
    }
