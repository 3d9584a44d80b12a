"""
Work items — Task, RFI, Submittal, Milestone.

Every work item belongs to a project and carries a status from its type's
enum (see ``buildtrack.domain.statuses``), a priority and an optional due
date. RFIs and submittals get a per-project sequential number:
``<project_number>-RFI-001`` / ``<project_number>-SUB-001``.
"""

import re

from buildtrack.domain.recipients import recipient_from_row
from buildtrack.domain import statuses
from buildtrack.models import db, iso, utcnow


class WorkItemMixin:
    """Columns shared by every work-item table."""

    id = db.Column(db.Integer, primary_key=True)
    priority = db.Column(db.String(20), default="Medium")
    due_date = db.Column(db.Date, nullable=True, index=True)
    created_by = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def _base_dict(self):
        return {
            "id": self.id,
            "item_type": self.ITEM_TYPE,
            "project_id": self.project_id,
            "project_number": self.project.project_number if self.project else None,
            "status": self.status,
            "priority": self.priority,
            "due_date": iso(self.due_date),
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class RecipientMixin:
    """Flattened RecipientInfo (external contact or internal owner)."""

    recipient_kind = db.Column(db.String(10), nullable=True, comment="external | internal")
    recipient_name = db.Column(db.String(150), nullable=True)
    recipient_email = db.Column(db.String(200), nullable=True)
    recipient_owner_id = db.Column(db.Integer, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════
#  TASK
# ═══════════════════════════════════════════════════════════════════════════

class Task(WorkItemMixin, RecipientMixin, db.Model):
    """A to-do on a project, assigned internally or to an outside party."""

    __tablename__ = "tasks"
    ITEM_TYPE = statuses.TASK

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="Not Started", index=True)
    internal_owner_id = db.Column(db.Integer, nullable=True, comment="Who tracks this task")
    completed_date = db.Column(db.Date, nullable=True)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            "title": self.title,
            "description": self.description,
            "assignee": recipient_from_row(self),
            "internal_owner_id": self.internal_owner_id,
            "completed_date": iso(self.completed_date),
        })
        return data

    def __repr__(self):
        return f"<Task {self.id}: {self.title[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  RFI
# ═══════════════════════════════════════════════════════════════════════════

class RFI(WorkItemMixin, RecipientMixin, db.Model):
    """Request for Information sent to an outside party or a team member."""

    __tablename__ = "rfis"
    __table_args__ = (
        db.UniqueConstraint("project_id", "rfi_number", name="uq_rfis_project_number"),
    )
    ITEM_TYPE = statuses.RFI

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    rfi_number = db.Column(db.String(80), nullable=False)
    subject = db.Column(db.String(300), nullable=False)
    question = db.Column(db.Text, default="")
    answer = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="Open", index=True)
    date_sent = db.Column(db.Date, nullable=True)
    answered_date = db.Column(db.Date, nullable=True)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            "rfi_number": self.rfi_number,
            "subject": self.subject,
            "title": self.subject,
            "question": self.question,
            "answer": self.answer,
            "recipient": recipient_from_row(self),
            "date_sent": iso(self.date_sent),
            "answered_date": iso(self.answered_date),
        })
        return data

    def __repr__(self):
        return f"<RFI {self.rfi_number}: {self.subject[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  SUBMITTAL
# ═══════════════════════════════════════════════════════════════════════════

SUBMITTAL_TYPES = (
    "Shop Drawings",
    "Product Data",
    "Samples",
    "Calculations",
    "Certificates",
    "O&M Manuals",
    "Warranties",
    "Other",
)


class Submittal(WorkItemMixin, db.Model):
    """Document / product-data package sent out for approval."""

    __tablename__ = "submittals"
    __table_args__ = (
        db.UniqueConstraint("project_id", "submittal_number", name="uq_submittals_project_number"),
    )
    ITEM_TYPE = statuses.SUBMITTAL

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    submittal_number = db.Column(db.String(80), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    submittal_type = db.Column(db.String(50), default="Shop Drawings")
    spec_section = db.Column(db.String(50), default="")
    manufacturer = db.Column(db.String(150), default="")
    status = db.Column(db.String(30), default="Pending", index=True)
    date_submitted = db.Column(db.Date, nullable=True)
    approved_date = db.Column(db.Date, nullable=True)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            "submittal_number": self.submittal_number,
            "title": self.title,
            "description": self.description,
            "submittal_type": self.submittal_type,
            "spec_section": self.spec_section,
            "manufacturer": self.manufacturer,
            "date_submitted": iso(self.date_submitted),
            "approved_date": iso(self.approved_date),
        })
        return data

    def __repr__(self):
        return f"<Submittal {self.submittal_number}: {self.title[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  MILESTONE
# ═══════════════════════════════════════════════════════════════════════════

class Milestone(WorkItemMixin, db.Model):
    """A schedule checkpoint on the project's key-dates timeline."""

    __tablename__ = "milestones"
    ITEM_TYPE = statuses.MILESTONE

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="Not Started", index=True)
    completed_date = db.Column(db.Date, nullable=True)

    @property
    def is_completed(self):
        return self.status == "Completed"

    def to_dict(self):
        data = self._base_dict()
        data.update({
            "name": self.name,
            "title": self.name,
            "description": self.description,
            "is_completed": self.is_completed,
            "completed_date": iso(self.completed_date),
        })
        return data

    def __repr__(self):
        return f"<Milestone {self.id}: {self.name[:40]}>"


MODELS_BY_TYPE = {
    statuses.TASK: Task,
    statuses.RFI: RFI,
    statuses.SUBMITTAL: Submittal,
    statuses.MILESTONE: Milestone,
}


# ── Sequential numbering ────────────────────────────────────────────────────

def _next_number(model, column, project, tag):
    prefix = f"{project.project_number}-{tag}-"
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for (value,) in db.session.query(column).filter(model.project_id == project.id):
        match = pattern.match(value or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1:03d}"


def next_rfi_number(project):
    """``<project_number>-RFI-NNN`` one past the highest number in use."""
    return _next_number(RFI, RFI.rfi_number, project, "RFI")


def next_submittal_number(project):
    return _next_number(Submittal, Submittal.submittal_number, project, "SUB")
