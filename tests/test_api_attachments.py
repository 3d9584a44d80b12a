"""
BuildTrack
Tests — Attachments.

Covers:
    - Multipart create of an item with files (item first, then each file)
    - Partial upload failure keeps the item and the other files
    - Project-level upload, owner filtering, single-owner rule
    - Download and two-step delete
    - Item delete removes its attachments
"""

import io
import json

from buildtrack.models.attachment import Attachment
from buildtrack.models.work_items import RFI
from buildtrack.services.storage import build_storage_path, safe_file_name


def _file(name, content=b"data"):
    return (io.BytesIO(content), name)


class TestItemCreateWithFiles:
    def test_rfi_with_three_files_one_failing(self, client, project, flaky_storage):
        flaky_storage.fail_on = ("file2",)
        res = client.post(
            f"/api/v1/projects/{project['id']}/rfis",
            data={
                "data": json.dumps({"subject": "Anchor spacing", "created_by": "Sam Lee"}),
                "files": [_file("file1.pdf"), _file("file2.pdf"), _file("file3.pdf")],
            },
            content_type="multipart/form-data",
        )
        assert res.status_code == 201
        body = res.get_json()
        assert body["rfi_number"] == "P-1001-RFI-001"
        assert [a["file_name"] for a in body["attachments"]["uploaded"]] == ["file1.pdf", "file3.pdf"]
        assert [f["file_name"] for f in body["attachments"]["failed"]] == ["file2.pdf"]
        assert len(flaky_storage.uploads) == 3

        assert RFI.query.count() == 1
        rows = Attachment.query.filter_by(rfi_id=body["id"]).all()
        assert sorted(a.file_name for a in rows) == ["file1.pdf", "file3.pdf"]
        assert all(a.storage_path.startswith(f"{project['id']}/rfis/{body['id']}/") for a in rows)
        assert all(a.uploaded_by == "Sam Lee" for a in rows)

    def test_bad_data_field(self, client, project):
        res = client.post(
            f"/api/v1/projects/{project['id']}/tasks",
            data={"data": "{not json", "files": [_file("a.txt")]},
            content_type="multipart/form-data",
        )
        assert res.status_code == 400


class TestProjectFiles:
    def test_upload_list_download_delete(self, client, project, storage):
        pid = project["id"]
        res = client.post(
            f"/api/v1/projects/{pid}/attachments",
            data={"files": [_file("site photo.jpg", b"jpeg-bytes")], "uploaded_by": "Ana"},
            content_type="multipart/form-data",
        )
        assert res.status_code == 201
        att = res.get_json()["uploaded"][0]
        assert att["attached_to"] == "project"
        assert att["file_size"] == len(b"jpeg-bytes")
        assert att["storage_path"].startswith(f"{pid}/general/")
        assert att["storage_path"].endswith("_site_photo.jpg")

        listed = client.get(f"/api/v1/projects/{pid}/attachments").get_json()
        assert listed["total"] == 1

        res = client.get(f"/api/v1/attachments/{att['id']}/download")
        assert res.status_code == 200
        assert res.data == b"jpeg-bytes"

        assert client.delete(f"/api/v1/attachments/{att['id']}").status_code == 200
        assert Attachment.query.count() == 0

    def test_all_files_failing_is_502(self, client, project, flaky_storage):
        flaky_storage.fail_on = ("general",)
        res = client.post(
            f"/api/v1/projects/{project['id']}/attachments",
            data={"files": [_file("a.pdf"), _file("b.pdf")]},
            content_type="multipart/form-data",
        )
        assert res.status_code == 502
        assert len(res.get_json()["failed"]) == 2
        assert Attachment.query.count() == 0

    def test_no_files(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/attachments", data={},
                          content_type="multipart/form-data")
        assert res.status_code == 400

    def test_two_owners_rejected(self, client, project):
        pid = project["id"]
        task = client.post(f"/api/v1/projects/{pid}/tasks", json={"title": "T"}).get_json()
        rfi = client.post(f"/api/v1/projects/{pid}/rfis", json={"subject": "R"}).get_json()
        res = client.post(
            f"/api/v1/projects/{pid}/attachments",
            data={"files": [_file("a.pdf")], "task_id": str(task["id"]), "rfi_id": str(rfi["id"])},
            content_type="multipart/form-data",
        )
        assert res.status_code == 422
        assert Attachment.query.count() == 0

    def test_owner_filter(self, client, project):
        pid = project["id"]
        task = client.post(f"/api/v1/projects/{pid}/tasks", json={"title": "T"}).get_json()
        client.post(f"/api/v1/projects/{pid}/attachments",
                    data={"files": [_file("task.pdf")], "task_id": str(task["id"])},
                    content_type="multipart/form-data")
        client.post(f"/api/v1/projects/{pid}/attachments",
                    data={"files": [_file("general.pdf")]},
                    content_type="multipart/form-data")

        data = client.get(f"/api/v1/projects/{pid}/attachments?task_id={task['id']}").get_json()
        assert [a["file_name"] for a in data["items"]] == ["task.pdf"]
        assert data["items"][0]["attached_to"] == "task"

    def test_owner_from_other_project(self, client, project):
        from conftest import make_project

        other = make_project(client, project_number="P-9", name="Other")
        task = client.post(f"/api/v1/projects/{other['id']}/tasks", json={"title": "T"}).get_json()
        res = client.post(
            f"/api/v1/projects/{project['id']}/attachments",
            data={"files": [_file("a.pdf")], "task_id": str(task["id"])},
            content_type="multipart/form-data",
        )
        assert res.status_code == 404


class TestDelete:
    def test_storage_failure_still_removes_row(self, client, project, flaky_storage):
        res = client.post(
            f"/api/v1/projects/{project['id']}/attachments",
            data={"files": [_file("a.pdf")]},
            content_type="multipart/form-data",
        )
        att = res.get_json()["uploaded"][0]
        flaky_storage.fail_delete = True
        assert client.delete(f"/api/v1/attachments/{att['id']}").status_code == 200
        assert flaky_storage.deletes == [att["storage_path"]]
        assert Attachment.query.count() == 0

    def test_deleting_item_removes_its_files(self, client, project, flaky_storage):
        res = client.post(
            f"/api/v1/projects/{project['id']}/tasks",
            data={"data": json.dumps({"title": "With files"}), "files": [_file("x.pdf")]},
            content_type="multipart/form-data",
        )
        task = res.get_json()
        assert client.delete(f"/api/v1/tasks/{task['id']}").status_code == 200
        assert Attachment.query.count() == 0
        assert len(flaky_storage.deletes) == 1


class TestStoragePaths:
    def test_safe_file_name(self):
        assert safe_file_name("Floor Plan (rev 2).pdf") == "Floor_Plan__rev_2_.pdf"
        assert safe_file_name("../../etc/passwd") == "passwd"

    def test_build_storage_path(self):
        from datetime import datetime, timezone

        now = datetime(2026, 1, 14, tzinfo=timezone.utc)
        path = build_storage_path(5, "tasks", "a b.pdf", owner_id=9, now=now)
        assert path == f"5/tasks/9/{int(now.timestamp() * 1000)}_a_b.pdf"
        assert build_storage_path(5, "general", "x", now=now).count("/") == 2
