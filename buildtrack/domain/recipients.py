"""
RecipientInfo — who an RFI is sent to or a task is assigned to.

Either an external contact (name + email) or an internal team member
(owner id). Stored flat on the row as ``recipient_kind``,
``recipient_name``, ``recipient_email`` and ``recipient_owner_id``; the
columns of the other branch are always NULL.
"""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from buildtrack.core.exceptions import ValidationError

EXTERNAL = "external"
INTERNAL = "internal"


@dataclass(frozen=True)
class ExternalRecipient:
    name: str
    email: str
    kind: str = EXTERNAL

    def to_columns(self):
        return {
            "recipient_kind": EXTERNAL,
            "recipient_name": self.name,
            "recipient_email": self.email,
            "recipient_owner_id": None,
        }


@dataclass(frozen=True)
class InternalRecipient:
    owner_id: int
    name: str = ""
    kind: str = INTERNAL

    def to_columns(self):
        return {
            "recipient_kind": INTERNAL,
            "recipient_name": self.name or None,
            "recipient_email": None,
            "recipient_owner_id": self.owner_id,
        }


EMPTY_COLUMNS = {
    "recipient_kind": None,
    "recipient_name": None,
    "recipient_email": None,
    "recipient_owner_id": None,
}


def parse_recipient(payload):
    """Build a recipient from a form payload's ``recipient`` object.

    Returns None when no recipient was given. Raises ValidationError when
    the branch's required fields are missing or the kind is unknown.
    """
    if not payload:
        return None
    if not isinstance(payload, dict):
        raise ValidationError("recipient must be an object", details={"recipient": "invalid"})
    kind = payload.get("kind")
    if kind == EXTERNAL:
        name = (payload.get("name") or "").strip()
        email = (payload.get("email") or "").strip()
        missing = {f: "required" for f, v in (("name", name), ("email", email)) if not v}
        if missing:
            raise ValidationError("External recipient needs a name and email", details=missing)
        try:
            email = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as exc:
            raise ValidationError(f"Invalid email: {exc}", details={"email": "invalid"}) from exc
        return ExternalRecipient(name=name, email=email)
    if kind == INTERNAL:
        owner_id = payload.get("owner_id")
        if owner_id in (None, ""):
            raise ValidationError("Internal recipient needs an owner_id",
                                  details={"owner_id": "required"})
        try:
            owner_id = int(owner_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError("owner_id must be an integer",
                                  details={"owner_id": "invalid"}) from exc
        return InternalRecipient(owner_id=owner_id, name=(payload.get("name") or "").strip())
    raise ValidationError(f"Unknown recipient kind {kind!r}", details={"kind": "invalid"})


def recipient_columns(recipient):
    return recipient.to_columns() if recipient else dict(EMPTY_COLUMNS)


def recipient_from_row(row):
    """Inverse of ``to_columns`` for serialisation; None when unset."""
    kind = getattr(row, "recipient_kind", None)
    if kind == EXTERNAL:
        return {"kind": EXTERNAL, "name": row.recipient_name, "email": row.recipient_email}
    if kind == INTERNAL:
        return {"kind": INTERNAL, "owner_id": row.recipient_owner_id, "name": row.recipient_name}
    return None
