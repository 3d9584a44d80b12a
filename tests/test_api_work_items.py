"""
BuildTrack
Tests — Work item API (tasks, RFIs, submittals, milestones) and the Kanban board.

Covers:
    - RFI / submittal sequential numbering
    - Recipient payloads (tagged and legacy flat fields)
    - Status changes: legacy mapping, completion stamps, validation
    - List filters, sort and summary
    - Milestone toggle
    - Board load, move, no-op and reverted move
"""

from datetime import date

import pytest

from buildtrack.core.exceptions import MoveFailedError
from buildtrack.domain.statuses import MILESTONE, RFI, SUBMITTAL, TASK
from buildtrack.models import db as _db
from buildtrack.models.project import Project
from buildtrack.models.work_items import MODELS_BY_TYPE, Task
from buildtrack.models.work_items import RFI as RFIModel
from buildtrack.services import dashboard_service


def _create(client, pid, kind, **payload):
    res = client.post(f"/api/v1/projects/{pid}/{kind}", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


class TestRFIs:
    def test_sequential_numbers(self, client, project):
        first = _create(client, project["id"], "rfis", subject="Beam size")
        second = _create(client, project["id"], "rfis", subject="Anchor bolts")
        assert first["rfi_number"] == "P-1001-RFI-001"
        assert second["rfi_number"] == "P-1001-RFI-002"
        assert first["status"] == "Open"

    def test_numbering_continues_past_highest(self, client, project):
        _create(client, project["id"], "rfis", subject="Imported", rfi_number="P-1001-RFI-007")
        nxt = _create(client, project["id"], "rfis", subject="Next")
        assert nxt["rfi_number"] == "P-1001-RFI-008"

    def test_duplicate_number_conflicts(self, client, project):
        _create(client, project["id"], "rfis", subject="One", rfi_number="X-1")
        res = client.post(f"/api/v1/projects/{project['id']}/rfis",
                          json={"subject": "Two", "rfi_number": "X-1"})
        assert res.status_code == 409

    def test_subject_required(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/rfis", json={"question": "?"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "subject is required"

    def test_external_recipient(self, client, project):
        rfi = _create(client, project["id"], "rfis", subject="Stair detail", recipient={
            "kind": "external", "name": "Dana Ortiz", "email": "dana@ortizarchitects.com",
        })
        assert rfi["recipient"] == {
            "kind": "external", "name": "Dana Ortiz", "email": "dana@ortizarchitects.com",
        }

    def test_legacy_flat_recipient_fields(self, client, project):
        rfi = _create(client, project["id"], "rfis", subject="Legacy form",
                      is_external=False, internal_owner_id=4, sent_to="Sam Lee")
        assert rfi["recipient"] == {"kind": "internal", "owner_id": 4, "name": "Sam Lee"}

    def test_bad_recipient_email(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/rfis", json={
            "subject": "Bad", "recipient": {"kind": "external", "name": "X", "email": "nope"},
        })
        assert res.status_code == 422

    def test_recipient_must_be_an_object(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/rfis",
                          json={"subject": "Plain string", "recipient": "bob@ortizarchitects.com"})
        assert res.status_code == 422
        assert res.get_json()["details"] == {"recipient": "invalid"}

    def test_models_keyed_by_item_type(self):
        assert MODELS_BY_TYPE[RFI] is RFIModel
        assert MODELS_BY_TYPE[TASK] is Task
        assert set(MODELS_BY_TYPE) == {TASK, RFI, SUBMITTAL, MILESTONE}

    def test_answered_stamps_and_reopen_clears_date(self, client, project):
        rfi = _create(client, project["id"], "rfis", subject="Beam size")
        res = client.patch(f"/api/v1/rfis/{rfi['id']}/status", json={"status": "Answered"})
        assert res.status_code == 200
        assert res.get_json()["answered_date"] == date.today().isoformat()

        res = client.patch(f"/api/v1/rfis/{rfi['id']}/status", json={"status": "Open"})
        assert res.get_json()["answered_date"] is None

    def test_invalid_status(self, client, project):
        rfi = _create(client, project["id"], "rfis", subject="Beam size")
        res = client.patch(f"/api/v1/rfis/{rfi['id']}/status", json={"status": "Completed"})
        assert res.status_code == 422
        assert "Answered" in res.get_json()["details"]["allowed"]

    def test_list_filters_and_summary(self, client, project):
        pid = project["id"]
        _create(client, pid, "rfis", subject="Late one", due_date="2026-01-01")
        _create(client, pid, "rfis", subject="Done", status="Closed", due_date="2026-01-01")
        _create(client, pid, "rfis", subject="Draft roof", status="Draft")

        res = client.get(f"/api/v1/projects/{pid}/rfis?status=overdue&today=2026-01-14")
        data = res.get_json()
        assert [r["subject"] for r in data["items"]] == ["Late one"]

        res = client.get(f"/api/v1/projects/{pid}/rfis?search=ROOF")
        assert res.get_json()["total"] == 1

        res = client.get(f"/api/v1/projects/{pid}/rfis?today=2026-01-14")
        assert res.get_json()["summary"] == {"total": 3, "open": 2, "overdue": 1, "completed": 1}


class TestTasksAndSubmittals:
    def test_legacy_task_status_is_normalised(self, client, project):
        task = _create(client, project["id"], "tasks", title="Wait on city")
        res = client.patch(f"/api/v1/tasks/{task['id']}/status", json={"status": "On Hold"})
        assert res.status_code == 200
        assert res.get_json()["status"] == "Awaiting Response"

    def test_task_completed_date(self, client, project):
        task = _create(client, project["id"], "tasks", title="Pour footings", status="Completed")
        assert task["completed_date"] == date.today().isoformat()

    def test_update_and_delete_task(self, client, project):
        task = _create(client, project["id"], "tasks", title="Order crane")
        res = client.put(f"/api/v1/tasks/{task['id']}", json={"priority": "High", "title": "Book crane"})
        assert res.get_json()["title"] == "Book crane"
        assert res.get_json()["priority"] == "High"

        res = client.put(f"/api/v1/tasks/{task['id']}", json={"priority": "Urgent"})
        assert res.status_code == 422

        assert client.delete(f"/api/v1/tasks/{task['id']}").status_code == 200
        assert client.get(f"/api/v1/tasks/{task['id']}").status_code == 404

    def test_submittal_numbering_and_approval(self, client, project):
        sub = _create(client, project["id"], "submittals", title="Windows",
                      submittal_type="Product Data", spec_section="08 50 00")
        assert sub["submittal_number"] == "P-1001-SUB-001"
        assert sub["status"] == "Pending"

        res = client.patch(f"/api/v1/submittals/{sub['id']}/status",
                           json={"status": "Approved as Noted"})
        assert res.get_json()["approved_date"] == date.today().isoformat()

    def test_unknown_submittal_type(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/submittals",
                          json={"title": "X", "submittal_type": "Poetry"})
        assert res.status_code == 422

    def test_sort_by_priority(self, client, project):
        pid = project["id"]
        _create(client, pid, "tasks", title="Low", priority="Low")
        _create(client, pid, "tasks", title="Critical", priority="Critical")
        res = client.get(f"/api/v1/projects/{pid}/tasks?sort=priority")
        assert [t["title"] for t in res.get_json()["items"]] == ["Critical", "Low"]

    def test_sort_by_recipient_is_rejected(self, client, project):
        pid = project["id"]
        for name in ("Dana Ortiz", "Sam Lee"):
            _create(client, pid, "tasks", title=name, recipient={
                "kind": "external", "name": name, "email": "site@ortizarchitects.com",
            })
        res = client.get(f"/api/v1/projects/{pid}/tasks?sort=assignee")
        assert res.status_code == 400
        assert res.get_json()["details"]["sort"] == "invalid"
        assert client.get(f"/api/v1/projects/{pid}/rfis?sort=recipient").status_code == 400

    def test_sort_by_due_date_descending(self, client, project):
        pid = project["id"]
        _create(client, pid, "tasks", title="Early", due_date="2026-03-01")
        _create(client, pid, "tasks", title="Late", due_date="2026-04-01")
        _create(client, pid, "tasks", title="Undated")
        res = client.get(f"/api/v1/projects/{pid}/tasks?sort=due_date&order=desc")
        assert [t["title"] for t in res.get_json()["items"]] == ["Late", "Early", "Undated"]

    def test_unknown_kind_is_404(self, client, project):
        assert client.get(f"/api/v1/projects/{project['id']}/invoices").status_code == 404


class TestMilestones:
    def test_toggle(self, client, project):
        ms = _create(client, project["id"], "milestones", name="Modules set", due_date="2026-02-01")
        res = client.post(f"/api/v1/milestones/{ms['id']}/toggle")
        data = res.get_json()
        assert data["is_completed"] is True
        assert data["completed_date"] == date.today().isoformat()

        data = client.post(f"/api/v1/milestones/{ms['id']}/toggle").get_json()
        assert data["is_completed"] is False
        assert data["completed_date"] is None


class TestBoard:
    def test_board_columns(self, client, project):
        _create(client, project["id"], "tasks", title="A")
        _create(client, project["id"], "tasks", title="B", status="In Progress")
        data = client.get(f"/api/v1/projects/{project['id']}/board/tasks").get_json()
        assert [c["id"] for c in data["columns"]] == [
            "Not Started", "In Progress", "Awaiting Response", "Completed",
        ]
        assert [i["title"] for i in data["columns"][1]["items"]] == ["B"]

    def test_cancelled_tasks_stay_off_the_board(self, client, project):
        _create(client, project["id"], "tasks", title="Live")
        _create(client, project["id"], "tasks", title="Dropped", status="Cancelled")
        data = client.get(f"/api/v1/projects/{project['id']}/board/tasks").get_json()
        titles = [i["title"] for c in data["columns"] for i in c["items"]]
        assert titles == ["Live"]
        assert data["off_board"] == 1

    def test_move_persists(self, client, project):
        task = _create(client, project["id"], "tasks", title="A")
        res = client.post(f"/api/v1/projects/{project['id']}/board/tasks/move",
                          json={"item_id": task["id"], "status": "Completed"})
        assert res.status_code == 200
        assert res.get_json()["moved"] is True
        assert client.get(f"/api/v1/tasks/{task['id']}").get_json()["status"] == "Completed"

    def test_same_column_is_no_op(self, client, project):
        task = _create(client, project["id"], "tasks", title="A")
        res = client.post(f"/api/v1/projects/{project['id']}/board/tasks/move",
                          json={"item_id": task["id"], "status": "Not Started"})
        assert res.get_json()["moved"] is False

    def test_invalid_column(self, client, project):
        task = _create(client, project["id"], "tasks", title="A")
        res = client.post(f"/api/v1/projects/{project['id']}/board/tasks/move",
                          json={"item_id": task["id"], "status": "Cancelled"})
        assert res.status_code == 422

    def test_failed_write_reverts(self, client, project):
        task = _create(client, project["id"], "tasks", title="A")
        proj = _db.session.get(Project, project["id"])

        def broken(item_id, status):
            raise RuntimeError("store unavailable")

        with pytest.raises(MoveFailedError) as excinfo:
            dashboard_service.move_on_board(proj, "task", task["id"], "Completed", update_status=broken)
        columns = {c["id"]: [i["id"] for i in c["items"]] for c in excinfo.value.columns}
        assert columns["Not Started"] == [task["id"]]
        assert columns["Completed"] == []
        assert _db.session.get(Task, task["id"]).status == "Not Started"

    def test_failed_write_maps_to_502(self, client, project, monkeypatch):
        task = _create(client, project["id"], "tasks", title="A")

        def broken(item_type):
            def update(item_id, status):
                raise RuntimeError("store unavailable")
            return update

        monkeypatch.setattr(dashboard_service, "_persist_status", broken)
        res = client.post(f"/api/v1/projects/{project['id']}/board/tasks/move",
                          json={"item_id": task["id"], "status": "Completed"})
        assert res.status_code == 502
        columns = res.get_json()["details"]["columns"]
        assert columns[0]["items"][0]["id"] == task["id"]
