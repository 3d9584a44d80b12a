"""
Shared pytest fixtures for the BuildTrack test suite.

Provides:
    - app: Flask application (session-scoped) with local file storage under a temp dir
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - project: Pre-created Project via the API
    - storage: the app's file storage backend
"""

import pytest

from buildtrack import create_app
from buildtrack.core.exceptions import StorageError
from buildtrack.models import db as _db
from buildtrack.services.storage import LocalFileStorage


class FlakyStorage(LocalFileStorage):
    """Local storage that refuses uploads whose path contains a marker string."""

    def __init__(self, root, fail_on=(), fail_delete=False):
        super().__init__(root)
        self.fail_on = tuple(fail_on)
        self.fail_delete = fail_delete
        self.uploads = []
        self.deletes = []

    def upload(self, path, data, content_type=None):
        self.uploads.append(path)
        if any(marker in path for marker in self.fail_on):
            raise StorageError("simulated outage", path=path)
        return super().upload(path, data, content_type)

    def delete(self, path):
        self.deletes.append(path)
        if self.fail_delete:
            raise StorageError("simulated outage", path=path)
        super().delete(path)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create the Flask application once per test session."""
    root = tmp_path_factory.mktemp("files")
    application = create_app("testing", storage=LocalFileStorage(str(root)))
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def storage(app):
    return app.extensions["file_storage"]


@pytest.fixture()
def flaky_storage(app, tmp_path, monkeypatch):
    """Swap in a FlakyStorage for one test; set ``fail_on`` / ``fail_delete`` on it."""
    stub = FlakyStorage(str(tmp_path))
    monkeypatch.setitem(app.extensions, "file_storage", stub)
    return stub


# ── Convenience fixtures ─────────────────────────────────────────────────


def make_project(client, **kw):
    payload = {
        "project_number": "P-1001",
        "name": "Riverside Dorms",
        "client_name": "Riverside College",
        "factory": "NWBS",
    }
    payload.update(kw)
    res = client.post("/api/v1/projects", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


@pytest.fixture()
def project(client):
    """Create and return a test Project via the API."""
    return make_project(client)
