"""Key-dates timeline for the project overview."""

from datetime import date

from buildtrack.domain.dates import coerce_date

# (field, label, is_target)
PROJECT_KEY_DATES = (
    ("start_date", "Project Start", False),
    ("target_offline_date", "Target Offline", True),
    ("delivery_date", "Delivery", True),
    ("target_online_date", "Target Online", True),
)


def build_key_dates(project, milestones=None, today=None):
    """Project schedule dates plus milestones, sorted by date.

    Schedule dates count as complete once they are in the past; milestones
    are complete when marked so.
    """
    ref = coerce_date(today) or date.today()
    entries = []
    for field, label, is_target in PROJECT_KEY_DATES:
        when = coerce_date((project or {}).get(field))
        if when is None:
            continue
        entries.append({
            "label": label,
            "date": when.isoformat(),
            "is_complete": when < ref,
            "is_target": is_target,
        })
    for milestone in milestones or []:
        when = coerce_date(milestone.get("due_date"))
        if when is None:
            continue
        entries.append({
            "label": milestone.get("name"),
            "date": when.isoformat(),
            "is_complete": bool(milestone.get("is_completed")),
            "is_target": False,
        })
    for entry in entries:
        entry["is_overdue"] = not entry["is_complete"] and coerce_date(entry["date"]) < ref
    entries.sort(key=lambda e: e["date"])
    return entries


def key_dates_progress(entries) -> int:
    if not entries:
        return 0
    done = sum(1 for e in entries if e["is_complete"])
    return round(done / len(entries) * 100)
