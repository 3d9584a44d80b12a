"""
Date derivations shared by the dashboard views.

All comparisons are date-only: time of day is dropped on both sides before
subtracting. Every function takes an optional ``today`` so callers (and
tests) can pin the reference day; it defaults to ``date.today()``.
"""

from datetime import date, datetime


def coerce_date(value):
    """Return ``value`` as a ``date``, or None for empty/unparseable input.

    Accepts date, datetime, ``YYYY-MM-DD`` and ISO datetime strings
    (``2026-01-14T09:30:00+00:00``, trailing ``Z`` allowed).
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _today(today):
    return coerce_date(today) or date.today()


def is_overdue(due_date, status, terminal_statuses, today=None) -> bool:
    """True when the item is past due and not in one of its terminal statuses.

    ``terminal_statuses`` is supplied per item type by the caller (a closed
    RFI and a completed task are both "done", but the words differ).
    """
    due = coerce_date(due_date)
    if due is None:
        return False
    if status in terminal_statuses:
        return False
    return due < _today(today)


def days_until(due_date, today=None):
    """Whole days from today to ``due_date``; negative when already past."""
    due = coerce_date(due_date)
    if due is None:
        return None
    return (due - _today(today)).days


def days_ago(value, today=None):
    """Whole days from ``value`` to today; positive for past dates."""
    then = coerce_date(value)
    if then is None:
        return None
    return (_today(today) - then).days


def format_short_date(value) -> str:
    """``Jan 14`` style label; empty string for missing dates."""
    d = coerce_date(value)
    if d is None:
        return ""
    return f"{d:%b} {d.day}"


def relative_time(value, today=None) -> str:
    """Activity-feed label: Today / Yesterday / N days ago / N weeks ago / Jan 14."""
    diff = days_ago(value, today)
    if diff is None:
        return ""
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Yesterday"
    if 1 < diff < 7:
        return f"{diff} days ago"
    if 7 <= diff < 30:
        return f"{diff // 7} weeks ago"
    return format_short_date(value)


def plural(count: int, noun: str) -> str:
    """``1 day`` / ``3 days``."""
    return f"{count} {noun}{'' if count == 1 else 's'}"
