"""
Blockers & attention list for the project overview.

Overdue tasks, RFIs and submittals are flagged ``critical`` once they are
further past due than their type's threshold, ``warning`` before that.
Tasks due within the next few days are added as ``info``. The list is
ordered by severity (stable, so collection order breaks ties) and capped.
"""

from buildtrack.domain.dates import days_until, format_short_date, is_overdue, plural
from buildtrack.domain.statuses import RFI, SUBMITTAL, TASK, TERMINAL_STATUSES

MAX_ATTENTION_ITEMS = 5
DUE_SOON_DAYS = 3

CRITICAL_AFTER_DAYS = {
    TASK: 7,
    RFI: 5,
    SUBMITTAL: 5,
}

SEVERITY_RANK = {"critical": 0, "warning": 1, "info": 2}


def _task_title(task):
    return task.get("title") or ""


def _rfi_title(rfi):
    number = rfi.get("rfi_number")
    subject = rfi.get("subject") or ""
    return f"{number}: {subject}" if number else subject


def _submittal_title(sub):
    number = sub.get("submittal_number")
    title = sub.get("title") or ""
    return f"{number}: {title}" if number else title


_TITLES = {
    TASK: _task_title,
    RFI: _rfi_title,
    SUBMITTAL: _submittal_title,
}


def _overdue_entries(items, item_type, today):
    terminal = TERMINAL_STATUSES[item_type]
    entries = []
    for item in items or []:
        if not is_overdue(item.get("due_date"), item.get("status"), terminal, today):
            continue
        days_overdue = abs(days_until(item.get("due_date"), today))
        entries.append({
            "type": item_type,
            "id": item.get("id"),
            "title": _TITLES[item_type](item),
            "message": f"{plural(days_overdue, 'day')} overdue",
            "severity": "critical" if days_overdue > CRITICAL_AFTER_DAYS[item_type] else "warning",
        })
    return entries


def _due_soon_entries(tasks, today):
    terminal = TERMINAL_STATUSES[TASK]
    entries = []
    for task in tasks or []:
        if task.get("status") in terminal:
            continue
        remaining = days_until(task.get("due_date"), today)
        if remaining is None or not 0 <= remaining <= DUE_SOON_DAYS:
            continue
        entries.append({
            "type": TASK,
            "id": task.get("id"),
            "title": _task_title(task),
            "message": f"Due {format_short_date(task.get('due_date'))}",
            "severity": "info",
        })
    return entries


def collect_attention_items(tasks, rfis, submittals, today=None, limit=MAX_ATTENTION_ITEMS):
    """Build the severity-ordered attention list.

    Returns at most ``limit`` entries of
    ``{"type", "id", "title", "message", "severity"}``. An empty list means
    the project is all clear.
    """
    entries = (
        _overdue_entries(tasks, TASK, today)
        + _overdue_entries(rfis, RFI, today)
        + _overdue_entries(submittals, SUBMITTAL, today)
        + _due_soon_entries(tasks, today)
    )
    entries.sort(key=lambda e: SEVERITY_RANK[e["severity"]])
    return entries[:limit]
