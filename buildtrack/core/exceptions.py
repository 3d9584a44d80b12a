"""
Platform-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
return consistent JSON errors.

Usage:
    from buildtrack.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Task", resource_id=42)
    raise ValidationError("subject is required", details={"subject": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Project", "RFI").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Distinct from HTTP 400 (required field missing, caught in the blueprint):
    this signals well-formed data that violates a rule, e.g. a status outside
    the item type's enum or an attachment bound to two owners.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation conflicts with the current state of a record.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} conflicts with current state")


class StorageError(Exception):
    """Raised when the file storage provider rejects an upload/read/delete.

    Maps to HTTP 502.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class MoveFailedError(Exception):
    """Raised when a Kanban status move could not be persisted.

    The board has already been reverted to its pre-move state when this is
    raised; ``columns`` carries that reverted grouping for the response.
    """

    def __init__(self, item_id, target_status: str, columns: list | None = None) -> None:
        self.item_id = item_id
        self.target_status = target_status
        self.columns = columns or []
        super().__init__(f"Could not move item {item_id} to {target_status!r}")
