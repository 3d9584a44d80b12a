"""
Calendar items and date bucketing for the week / month views.

Weeks start on Monday. A work-week view shows Monday–Friday only.
"""

from datetime import date, timedelta

from buildtrack.domain.dates import coerce_date

PROJECT_COLORS = (
    "#ff6b35",
    "#3b82f6",
    "#22c55e",
    "#f59e0b",
    "#8b5cf6",
    "#06b6d4",
    "#ec4899",
    "#64748b",
    "#ef4444",
    "#14b8a6",
)

# Calendar item types, in the order they are listed within a day.
ONLINE_DATE = "online_date"
OFFLINE_DATE = "offline_date"
DELIVERY_DATE = "delivery_date"
MILESTONE = "milestone"
TASK = "task"
RFI = "rfi"
SUBMITTAL = "submittal"

TYPE_PRIORITY = {
    ONLINE_DATE: 1,
    OFFLINE_DATE: 2,
    DELIVERY_DATE: 3,
    MILESTONE: 4,
    TASK: 5,
    RFI: 6,
    SUBMITTAL: 7,
}

_PROJECT_DATE_FIELDS = (
    (ONLINE_DATE, "target_online_date", "Online"),
    (OFFLINE_DATE, "target_offline_date", "Offline"),
    (DELIVERY_DATE, "delivery_date", "Delivery"),
)


def date_key(value) -> str:
    d = coerce_date(value)
    return d.isoformat() if d else ""


def week_start(ref) -> date:
    """Monday of the week containing ``ref`` (Sunday closes the week)."""
    d = coerce_date(ref)
    return d - timedelta(days=d.weekday())


def week_dates(ref, include_weekends=True) -> list:
    start = week_start(ref)
    length = 7 if include_weekends else 5
    return [start + timedelta(days=i) for i in range(length)]


def month_dates(ref) -> list:
    """Monday-start grid covering the whole month of ``ref``, ending on a Sunday."""
    d = coerce_date(ref)
    first = d.replace(day=1)
    next_month = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    last = next_month - timedelta(days=1)
    start = week_start(first)
    end = last + timedelta(days=6 - last.weekday())
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def project_color(project, index=0) -> str:
    if project and project.get("color"):
        return project["color"]
    return PROJECT_COLORS[index % len(PROJECT_COLORS)]


def _item(item_id, item_type, title, when, color, status, project_id, project_name, data):
    return {
        "id": item_id,
        "type": item_type,
        "title": title,
        "date": date_key(when),
        "color": color,
        "status": status,
        "project_id": project_id,
        "project_name": project_name,
        "data": data,
    }


def build_calendar_items(projects=None, tasks=None, rfis=None, submittals=None, milestones=None):
    """Flatten work items and project schedule dates into calendar items.

    Rows without a date are skipped; nothing here is persisted.
    """
    projects = projects or []
    colors = {}
    names = {}
    for index, project in enumerate(projects):
        colors[project.get("id")] = project_color(project, index)
        names[project.get("id")] = project.get("name") or "Unknown Project"

    def color_for(row):
        return colors.get(row.get("project_id"), PROJECT_COLORS[0])

    def name_for(row):
        return names.get(row.get("project_id"), "Unknown Project")

    items = []
    for task in tasks or []:
        if coerce_date(task.get("due_date")):
            items.append(_item(
                f"task-{task['id']}", TASK, task.get("title"), task["due_date"],
                color_for(task), task.get("status"), task.get("project_id"), name_for(task), task,
            ))
    for rfi in rfis or []:
        if coerce_date(rfi.get("due_date")):
            title = f"{rfi.get('rfi_number')}: {rfi.get('subject')}" if rfi.get("rfi_number") else rfi.get("subject")
            items.append(_item(
                f"rfi-{rfi['id']}", RFI, title, rfi["due_date"],
                color_for(rfi), rfi.get("status"), rfi.get("project_id"), name_for(rfi), rfi,
            ))
    for sub in submittals or []:
        if coerce_date(sub.get("due_date")):
            title = (
                f"{sub.get('submittal_number')}: {sub.get('title')}"
                if sub.get("submittal_number") else sub.get("title")
            )
            items.append(_item(
                f"sub-{sub['id']}", SUBMITTAL, title, sub["due_date"],
                color_for(sub), sub.get("status"), sub.get("project_id"), name_for(sub), sub,
            ))
    for milestone in milestones or []:
        if coerce_date(milestone.get("due_date")):
            items.append(_item(
                f"milestone-{milestone['id']}", MILESTONE, milestone.get("name"), milestone["due_date"],
                color_for(milestone), milestone.get("status"), milestone.get("project_id"),
                name_for(milestone), milestone,
            ))
    for index, project in enumerate(projects):
        for item_type, field, label in _PROJECT_DATE_FIELDS:
            when = project.get(field)
            if coerce_date(when):
                items.append(_item(
                    f"{item_type.split('_')[0]}-{project['id']}", item_type,
                    f"{project.get('name')} - {label}", when, project_color(project, index),
                    project.get("status"), project.get("id"), project.get("name"), project,
                ))
    return items


def group_items_by_date(items) -> dict:
    """Bucket items by ``YYYY-MM-DD``; each dated item lands in exactly one bucket."""
    grouped = {}
    for item in items or []:
        key = date_key(item.get("date"))
        if not key:
            continue
        grouped.setdefault(key, []).append(item)
    for bucket in grouped.values():
        bucket.sort(key=lambda i: TYPE_PRIORITY.get(i.get("type"), len(TYPE_PRIORITY) + 1))
    return grouped


def items_in_range(items, start, end) -> list:
    """Items whose date falls within ``start``..``end`` inclusive."""
    start, end = coerce_date(start), coerce_date(end)
    selected = []
    for item in items or []:
        d = coerce_date(item.get("date"))
        if d is not None and start <= d <= end:
            selected.append(item)
    return selected


def build_view(items, ref, view="week") -> dict:
    """Dates and buckets for one calendar screen.

    ``view`` is ``week`` (Mon–Sun), ``workweek`` (Mon–Fri) or ``month``.
    """
    if view == "month":
        dates = month_dates(ref)
    else:
        dates = week_dates(ref, include_weekends=(view != "workweek"))
    visible = items_in_range(items, dates[0], dates[-1])
    buckets = group_items_by_date(visible)
    return {
        "view": view,
        "start": dates[0].isoformat(),
        "end": dates[-1].isoformat(),
        "dates": [d.isoformat() for d in dates],
        "days": {d.isoformat(): buckets.get(d.isoformat(), []) for d in dates},
        "total": len(visible),
    }
