"""
List-page filtering, sorting and header counts for tasks, RFIs and submittals.

``"all"`` (or an empty value) disables a filter. Status filters accept either
an exact stored status or one of the named groups below.
"""

from buildtrack.domain.dates import coerce_date, is_overdue
from buildtrack.domain.statuses import RFI, SUBMITTAL, TASK, TERMINAL_STATUSES

PRIORITY_ORDER = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3}


def _is_all(value):
    return value in (None, "", "all")


def _overdue(item, item_type, today):
    return is_overdue(item.get("due_date"), item.get("status"), TERMINAL_STATUSES[item_type], today)


def _matches_group(item, item_type, group, today):
    status = item.get("status")
    terminal = TERMINAL_STATUSES[item_type]
    if group == "open":
        return status not in terminal
    if group == "overdue":
        return _overdue(item, item_type, today)
    if group == "answered" and item_type == RFI:
        return status == "Answered"
    if group == "pending" and item_type == SUBMITTAL:
        return status in ("Pending", "Submitted", "Under Review")
    if group == "approved" and item_type == SUBMITTAL:
        return status in terminal
    return status == group


def _search_hit(item, term, fields):
    term = term.lower()
    for field in fields:
        value = item.get(field)
        if value and term in str(value).lower():
            return True
    return False


def filter_items(items, item_type, status="all", priority="all", project_id=None,
                 search="", search_fields=(), today=None):
    result = []
    for item in items or []:
        if not _is_all(status) and not _matches_group(item, item_type, status, today):
            continue
        if not _is_all(priority) and item.get("priority") != priority:
            continue
        if project_id is not None and item.get("project_id") != project_id:
            continue
        if search and not _search_hit(item, search, search_fields):
            continue
        result.append(item)
    return result


def filter_tasks(tasks, status="all", priority="all", search="", today=None):
    return filter_items(tasks, TASK, status=status, priority=priority, search=search,
                        search_fields=("title", "description"), today=today)


def filter_rfis(rfis, status="all", project_id=None, search="", today=None):
    """RFI log filter: groups ``open``, ``answered``, ``overdue``; free-text search
    over subject, RFI number and project number."""
    return filter_items(rfis, RFI, status=status, project_id=project_id, search=search,
                        search_fields=("subject", "rfi_number", "project_number"), today=today)


def filter_submittals(submittals, status="all", project_id=None, search="", today=None):
    return filter_items(submittals, SUBMITTAL, status=status, project_id=project_id, search=search,
                        search_fields=("title", "submittal_number", "spec_section", "project_number"),
                        today=today)


def _sort_value(item, key):
    value = item.get(key)
    if key == "priority":
        return PRIORITY_ORDER.get(value, len(PRIORITY_ORDER))
    if key.endswith("_date") or key.endswith("_at"):
        return coerce_date(value)
    if isinstance(value, str):
        return value.lower()
    return value


def sort_items(items, key, descending=False):
    """Stable sort on ``key``; rows missing the value always sort last."""
    present = [i for i in items if _sort_value(i, key) is not None]
    missing = [i for i in items if _sort_value(i, key) is None]
    present.sort(key=lambda i: _sort_value(i, key), reverse=descending)
    return present + missing


def summarize(items, item_type, today=None) -> dict:
    """Header counts for a list page."""
    terminal = TERMINAL_STATUSES[item_type]
    items = items or []
    return {
        "total": len(items),
        "open": sum(1 for i in items if i.get("status") not in terminal),
        "overdue": sum(1 for i in items if _overdue(i, item_type, today)),
        "completed": sum(1 for i in items if i.get("status") in terminal),
    }
