"""
Status vocabularies per work-item type.

The tuples are ordered: Kanban columns and status pickers follow this order.
Values are the exact strings stored in the database.
"""

TASK = "task"
RFI = "rfi"
SUBMITTAL = "submittal"
MILESTONE = "milestone"

ITEM_TYPES = (TASK, RFI, SUBMITTAL, MILESTONE)

PRIORITY_LEVELS = ("Low", "Medium", "High", "Critical")

TASK_STATUSES = ("Not Started", "In Progress", "Awaiting Response", "Completed", "Cancelled")
RFI_STATUSES = ("Draft", "Open", "Answered", "Closed")
SUBMITTAL_STATUSES = (
    "Pending",
    "Submitted",
    "Under Review",
    "Approved",
    "Approved as Noted",
    "Revise and Resubmit",
    "Rejected",
)
MILESTONE_STATUSES = ("Not Started", "In Progress", "Completed")

STATUSES = {
    TASK: TASK_STATUSES,
    RFI: RFI_STATUSES,
    SUBMITTAL: SUBMITTAL_STATUSES,
    MILESTONE: MILESTONE_STATUSES,
}

# Past these, "overdue" no longer applies.
TERMINAL_STATUSES = {
    TASK: frozenset({"Completed", "Cancelled"}),
    RFI: frozenset({"Answered", "Closed"}),
    SUBMITTAL: frozenset({"Approved", "Approved as Noted"}),
    MILESTONE: frozenset({"Completed"}),
}

DEFAULT_STATUS = {
    TASK: "Not Started",
    RFI: "Open",
    SUBMITTAL: "Pending",
    MILESTONE: "Not Started",
}

# Older dashboard builds wrote these for the "waiting" column.
LEGACY_TASK_STATUSES = {
    "On Hold": "Awaiting Response",
    "Blocked": "Awaiting Response",
}


def normalize_status(item_type: str, status):
    """Map legacy spellings onto the canonical enum; other values pass through."""
    if item_type == TASK and status in LEGACY_TASK_STATUSES:
        return LEGACY_TASK_STATUSES[status]
    return status


def is_valid_status(item_type: str, status) -> bool:
    return status in STATUSES.get(item_type, ())


def is_terminal(item_type: str, status) -> bool:
    return status in TERMINAL_STATUSES.get(item_type, frozenset())
