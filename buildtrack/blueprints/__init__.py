"""
BuildTrack blueprint registry helpers.
"""

from flask import current_app, request


def paginate_query(query, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = query.count()
    limit, offset = _page_args(default_limit, max_limit)
    items = query.limit(limit).offset(offset).all()
    return items, total


def paginate_list(rows, default_limit=200, max_limit=1000):
    """Same as ``paginate_query`` for an already-filtered list."""
    limit, offset = _page_args(default_limit, max_limit)
    return rows[offset:offset + limit], len(rows)


def _page_args(default_limit, max_limit):
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return limit, offset


def file_storage():
    """The storage backend the app factory registered."""
    return current_app.extensions["file_storage"]
