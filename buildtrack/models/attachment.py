"""
Attachment — a stored file bound to one task, RFI or submittal, or to the
project as a whole when no owner key is set.
"""

from buildtrack.models import db, iso, utcnow

OWNER_KEYS = ("task_id", "rfi_id", "submittal_id")

# owner key -> storage path segment
OWNER_FOLDERS = {
    "task_id": "tasks",
    "rfi_id": "rfis",
    "submittal_id": "submittals",
}


class Attachment(db.Model):
    """Metadata row for a file in object storage."""

    __tablename__ = "attachments"
    __table_args__ = (
        db.CheckConstraint(
            "(CASE WHEN task_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN rfi_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN submittal_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_attachments_single_owner",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    rfi_id = db.Column(db.Integer, db.ForeignKey("rfis.id", ondelete="CASCADE"), nullable=True, index=True)
    submittal_id = db.Column(
        db.Integer, db.ForeignKey("submittals.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    file_name = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.Integer, default=0)
    file_type = db.Column(db.String(120), default="application/octet-stream")
    storage_path = db.Column(db.String(500), nullable=False, unique=True)
    public_url = db.Column(db.String(1000), default="")
    uploaded_by = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    @property
    def owner(self):
        """``(owner_key, owner_id)`` or ``(None, None)`` for a project-level file."""
        for key in OWNER_KEYS:
            value = getattr(self, key)
            if value is not None:
                return key, value
        return None, None

    def to_dict(self):
        owner_key, owner_id = self.owner
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "rfi_id": self.rfi_id,
            "submittal_id": self.submittal_id,
            "attached_to": OWNER_FOLDERS[owner_key][:-1] if owner_key else "project",
            "attached_id": owner_id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "storage_path": self.storage_path,
            "public_url": self.public_url,
            "uploaded_by": self.uploaded_by,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<Attachment {self.id}: {self.file_name}>"
