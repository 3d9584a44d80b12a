"""
Factory production — modules built for a project and their QC inspections.
"""

from buildtrack.models import db, iso, utcnow

MODULE_STATUSES = (
    "Not Started",
    "In Queue",
    "In Progress",
    "QC Hold",
    "Completed",
    "Shipped",
)


class Module(db.Model):
    """One box of a modular building, tracked through the factory stations."""

    __tablename__ = "modules"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    serial_number = db.Column(db.String(60), unique=True, nullable=False)
    building_section = db.Column(db.String(60), default="")
    status = db.Column(db.String(30), default="Not Started", index=True)
    station = db.Column(db.String(60), default="")
    scheduled_start = db.Column(db.Date, nullable=True)
    scheduled_end = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    qc_records = db.relationship(
        "QCRecord", backref="module", lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "serial_number": self.serial_number,
            "building_section": self.building_section,
            "status": self.status,
            "station": self.station,
            "scheduled_start": iso(self.scheduled_start),
            "scheduled_end": iso(self.scheduled_end),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Module {self.serial_number}>"


class QCRecord(db.Model):
    """A QC inspection of a module at a station."""

    __tablename__ = "qc_records"

    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(
        db.Integer, db.ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    inspector = db.Column(db.String(150), default="")
    station = db.Column(db.String(60), default="")
    passed = db.Column(db.Boolean, nullable=False, default=True)
    defects_found = db.Column(db.Integer, default=0)
    notes = db.Column(db.Text, default="")
    inspected_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "module_id": self.module_id,
            "inspector": self.inspector,
            "station": self.station,
            "passed": self.passed,
            "defects_found": self.defects_found,
            "notes": self.notes,
            "inspected_at": iso(self.inspected_at),
        }
