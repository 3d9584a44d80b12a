"""
Attachment service: multi-file upload, listing, download and two-step delete.

Upload is a sequential loop. Each file is written to storage and then gets
its own committed row, so a failure on one file (storage or insert) is
logged and skipped while the rest continue. Nothing is retried.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from buildtrack.core.exceptions import NotFoundError, StorageError, ValidationError
from buildtrack.domain.statuses import RFI, SUBMITTAL, TASK
from buildtrack.models import db
from buildtrack.models.attachment import OWNER_FOLDERS, OWNER_KEYS, Attachment
from buildtrack.models.work_items import MODELS_BY_TYPE
from buildtrack.services.storage import build_storage_path

logger = logging.getLogger(__name__)

_OWNER_TYPES = {
    "task_id": TASK,
    "rfi_id": RFI,
    "submittal_id": SUBMITTAL,
}

_OWNER_LABELS = {
    "task_id": "Task",
    "rfi_id": "RFI",
    "submittal_id": "Submittal",
}

GENERAL_FOLDER = "general"


def resolve_owner(project, data) -> tuple[str | None, int | None]:
    """Pick the single owner key from a form / payload.

    Returns ``(None, None)`` for a project-level file. More than one owner
    key, a non-integer id, or an owner from another project is rejected.
    """
    given = {key: data.get(key) for key in OWNER_KEYS if data.get(key) not in (None, "")}
    if len(given) > 1:
        raise ValidationError(
            "An attachment belongs to at most one of task, RFI or submittal",
            details={key: "conflict" for key in given},
        )
    if not given:
        return None, None

    key, raw = next(iter(given.items()))
    try:
        owner_id = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{key} must be an integer", details={key: "invalid"}) from exc

    owner = db.session.get(MODELS_BY_TYPE[_OWNER_TYPES[key]], owner_id)
    if owner is None or owner.project_id != project.id:
        raise NotFoundError(resource=_OWNER_LABELS[key], resource_id=owner_id)
    return key, owner_id


def list_attachments(project, owner_key=None, owner_id=None) -> list[Attachment]:
    q = Attachment.query.filter_by(project_id=project.id)
    if owner_key:
        q = q.filter(getattr(Attachment, owner_key) == owner_id)
    return q.order_by(Attachment.created_at.desc(), Attachment.id.desc()).all()


def upload_attachments(project, files, storage, owner_key=None, owner_id=None,
                       uploaded_by="") -> dict:
    """Store each file and insert its row.

    Args:
        files: iterable of werkzeug ``FileStorage`` objects (``filename``,
            ``mimetype``, ``read()``).
        storage: a ``buildtrack.services.storage.FileStorage``.

    Returns:
        ``{"uploaded": [attachment dicts], "failed": [{"file_name", "error"}]}``
    """
    folder = OWNER_FOLDERS[owner_key] if owner_key else GENERAL_FOLDER
    uploaded, failed = [], []

    for upload in files:
        file_name = upload.filename or "file"
        path = build_storage_path(project.id, folder, file_name, owner_id=owner_id)
        try:
            data = upload.read()
            public_url = storage.upload(path, data, upload.mimetype)
        except StorageError as exc:
            logger.warning("Attachment upload failed for %s: %s", file_name, exc,
                           extra={"project_id": project.id, "storage_path": path})
            failed.append({"file_name": file_name, "error": str(exc)})
            continue

        attachment = Attachment(
            project_id=project.id,
            file_name=file_name,
            file_size=len(data),
            file_type=upload.mimetype or "application/octet-stream",
            storage_path=path,
            public_url=public_url,
            uploaded_by=uploaded_by or "",
        )
        if owner_key:
            setattr(attachment, owner_key, owner_id)
        try:
            db.session.add(attachment)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Attachment row insert failed for %s: %s", file_name, exc,
                           extra={"project_id": project.id, "storage_path": path})
            failed.append({"file_name": file_name, "error": "Database error"})
            continue
        uploaded.append(attachment.to_dict())

    logger.info("Uploaded %d/%d file(s) to project %s", len(uploaded),
                len(uploaded) + len(failed), project.id, extra={"project_id": project.id})
    return {"uploaded": uploaded, "failed": failed}


def get_attachment(attachment_id: int) -> Attachment:
    attachment = db.session.get(Attachment, attachment_id)
    if attachment is None:
        raise NotFoundError(resource="Attachment", resource_id=attachment_id)
    return attachment


def read_attachment(attachment: Attachment, storage) -> bytes:
    return storage.read(attachment.storage_path)


def delete_attachment(attachment: Attachment, storage):
    """Remove the stored object, then the row.

    The two calls are not transactional: if the storage delete fails the
    failure is logged and the row is removed anyway.
    """
    try:
        storage.delete(attachment.storage_path)
    except StorageError as exc:
        logger.warning("Storage delete failed for attachment %s: %s", attachment.id, exc,
                       extra={"storage_path": attachment.storage_path})
    db.session.delete(attachment)
    db.session.flush()


def delete_owner_attachments(owner_key: str, owner_id: int, storage=None) -> int:
    """Delete every attachment bound to one task / RFI / submittal."""
    rows = Attachment.query.filter(getattr(Attachment, owner_key) == owner_id).all()
    for attachment in rows:
        if storage is not None:
            delete_attachment(attachment, storage)
        else:
            db.session.delete(attachment)
    db.session.flush()
    return len(rows)
