"""
Project — aggregate root for every work item, attachment, floor plan and
module.

Projects are never hard-deleted; they end in ``Completed`` or ``Cancelled``.
"""

from buildtrack.models import db, iso, utcnow

PROJECT_STATUSES = (
    "Planning",
    "Pre-PM",
    "In Progress",
    "On Hold",
    "Completed",
    "Cancelled",
    "Warranty",
)

CLOSED_PROJECT_STATUSES = {"Completed", "Cancelled"}

# Factory catalogue. Older project forms stored "CODE - Name" labels; the
# code is the canonical value. Bump the version when the list changes.
FACTORY_CATALOG_VERSION = 3
FACTORY_CATALOG = {
    "AMT": "AMTEX",
    "BUSA": "Britco USA",
    "C&B": "C&B Modular",
    "IBI": "Indicom Buildings",
    "MRS": "MR Steel",
    "NWBS": "Northwest Building Systems",
    "PMI": "Phoenix Modular",
    "PRM": "Pro-Mod Manufacturing",
    "SMM": "Southeast Modular",
    "SNB": "Sunbelt Modular (Corporate)",
    "SSI": "Specialized Structures",
    "WM-EAST": "Whitley Manufacturing East",
    "WM-EVERGREEN": "Whitley Manufacturing Evergreen",
    "WM-ROCHESTER": "Whitley Manufacturing Rochester",
    "WM-SOUTH": "Whitley Manufacturing South",
}


def normalize_factory(value):
    """Return the catalogue code for ``value`` (code or legacy label), or None."""
    if not value:
        return None
    text = str(value).strip()
    if text in FACTORY_CATALOG:
        return text
    code = text.split(" - ", 1)[0].strip()
    if code in FACTORY_CATALOG:
        return code
    for known, name in FACTORY_CATALOG.items():
        if name.lower() == text.lower():
            return known
    return None


class Project(db.Model):
    """A modular building job tracked from planning through warranty."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    project_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(30), nullable=False, default="Planning", index=True)

    # Descriptive
    client_name = db.Column(db.String(200), default="")
    factory = db.Column(db.String(30), nullable=True, comment="FACTORY_CATALOG code")
    building_type = db.Column(db.String(100), default="")
    module_count = db.Column(db.Integer, nullable=True)
    contract_value = db.Column(db.Numeric(14, 2), nullable=True)
    pm_name = db.Column(db.String(150), default="")
    pm_email = db.Column(db.String(200), default="")
    color = db.Column(db.String(10), nullable=True, comment="Calendar colour override")
    notes = db.Column(db.Text, default="")

    # Schedule
    start_date = db.Column(db.Date, nullable=True)
    target_offline_date = db.Column(db.Date, nullable=True)
    delivery_date = db.Column(db.Date, nullable=True)
    target_online_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tasks = db.relationship("Task", backref="project", lazy="dynamic", cascade="all, delete-orphan")
    rfis = db.relationship("RFI", backref="project", lazy="dynamic", cascade="all, delete-orphan")
    submittals = db.relationship("Submittal", backref="project", lazy="dynamic",
                                 cascade="all, delete-orphan")
    milestones = db.relationship("Milestone", backref="project", lazy="dynamic",
                                 cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "project_number": self.project_number,
            "name": self.name,
            "status": self.status,
            "client_name": self.client_name,
            "factory": self.factory,
            "factory_name": FACTORY_CATALOG.get(self.factory) if self.factory else None,
            "building_type": self.building_type,
            "module_count": self.module_count,
            "contract_value": float(self.contract_value) if self.contract_value is not None else None,
            "pm_name": self.pm_name,
            "pm_email": self.pm_email,
            "color": self.color,
            "notes": self.notes,
            "start_date": iso(self.start_date),
            "target_offline_date": iso(self.target_offline_date),
            "delivery_date": iso(self.delivery_date),
            "target_online_date": iso(self.target_online_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.project_number}: {self.name[:40]}>"
