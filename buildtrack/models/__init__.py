"""
BuildTrack data models.

The ``db`` handle is initialised by the app factory; models import it from
here so there is a single SQLAlchemy instance.
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


def iso(value):
    """``isoformat()`` or None — used by every ``to_dict``."""
    return value.isoformat() if value else None
