"""
Floor plans and their positional markers.

A floor plan is soft-deleted (``is_active = False``) so markers placed on
it stay queryable for history.
"""

from buildtrack.models import db, iso, utcnow

MARKER_ITEM_TYPES = ("rfi", "submittal", "task")


class FloorPlan(db.Model):
    __tablename__ = "floor_plans"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    storage_path = db.Column(db.String(500), nullable=False)
    public_url = db.Column(db.String(1000), default="")
    file_type = db.Column(db.String(120), default="application/pdf")
    file_size = db.Column(db.Integer, default=0)
    page_count = db.Column(db.Integer, default=1)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    uploaded_by = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    markers = db.relationship(
        "FloorPlanMarker", backref="floor_plan", lazy="select",
        cascade="all, delete-orphan", order_by="FloorPlanMarker.id",
    )

    def to_dict(self, include_markers=False):
        data = {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "storage_path": self.storage_path,
            "public_url": self.public_url,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "page_count": self.page_count,
            "is_active": self.is_active,
            "uploaded_by": self.uploaded_by,
            "marker_count": len(self.markers),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_markers:
            data["markers"] = [m.to_dict() for m in self.markers]
        return data

    def __repr__(self):
        return f"<FloorPlan {self.id}: {self.name[:40]}>"


class FloorPlanMarker(db.Model):
    """Pin on a floor plan page pointing at an RFI, submittal or task.

    Position is stored as a percentage of page width/height so it survives
    re-rendering at any zoom.
    """

    __tablename__ = "floor_plan_markers"

    id = db.Column(db.Integer, primary_key=True)
    floor_plan_id = db.Column(
        db.Integer, db.ForeignKey("floor_plans.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    item_type = db.Column(db.String(20), nullable=False)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    x_percent = db.Column(db.Float, nullable=False)
    y_percent = db.Column(db.Float, nullable=False)
    page_number = db.Column(db.Integer, default=1)
    label = db.Column(db.String(100), default="")
    created_by = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "floor_plan_id": self.floor_plan_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "x_percent": self.x_percent,
            "y_percent": self.y_percent,
            "page_number": self.page_number,
            "label": self.label,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
        }
