"""
BuildTrack
Tests — Floor plans and markers.
"""

import io

import pytest


@pytest.fixture()
def plan(client, project):
    res = client.post(
        f"/api/v1/projects/{project['id']}/floor-plans",
        data={"file": (io.BytesIO(b"%PDF-1.7"), "level1.pdf"), "name": "Level 1", "page_count": "2"},
        content_type="multipart/form-data",
    )
    assert res.status_code == 201, res.get_json()
    return res.get_json()


@pytest.fixture()
def rfi(client, project):
    return client.post(f"/api/v1/projects/{project['id']}/rfis", json={"subject": "Shear wall"}).get_json()


class TestFloorPlans:
    def test_upload(self, plan, project):
        assert plan["name"] == "Level 1"
        assert plan["page_count"] == 2
        assert plan["is_active"] is True
        assert plan["storage_path"].startswith(f"{project['id']}/floor-plans/")

    def test_file_required(self, client, project):
        res = client.post(f"/api/v1/projects/{project['id']}/floor-plans", data={"name": "x"},
                          content_type="multipart/form-data")
        assert res.status_code == 400

    def test_bad_page_count_stores_nothing(self, client, project, flaky_storage):
        res = client.post(
            f"/api/v1/projects/{project['id']}/floor-plans",
            data={"file": (io.BytesIO(b"x"), "a.pdf"), "page_count": "many"},
            content_type="multipart/form-data",
        )
        assert res.status_code == 422
        assert flaky_storage.uploads == []

    def test_storage_failure_is_502(self, client, project, flaky_storage):
        flaky_storage.fail_on = ("floor-plans",)
        res = client.post(
            f"/api/v1/projects/{project['id']}/floor-plans",
            data={"file": (io.BytesIO(b"x"), "a.pdf")},
            content_type="multipart/form-data",
        )
        assert res.status_code == 502

    def test_soft_delete(self, client, project, plan):
        assert client.delete(f"/api/v1/floor-plans/{plan['id']}").status_code == 200
        listed = client.get(f"/api/v1/projects/{project['id']}/floor-plans").get_json()
        assert listed["total"] == 0
        listed = client.get(f"/api/v1/projects/{project['id']}/floor-plans?include_inactive=1").get_json()
        assert listed["items"][0]["is_active"] is False


class TestMarkers:
    def test_add_and_lookup(self, client, plan, rfi):
        res = client.post(f"/api/v1/floor-plans/{plan['id']}/markers", json={
            "item_type": "rfi", "item_id": rfi["id"], "x_percent": 25.5, "y_percent": 0,
            "page_number": 2, "label": "A",
        })
        assert res.status_code == 201
        marker = res.get_json()
        assert marker["page_number"] == 2

        detail = client.get(f"/api/v1/floor-plans/{plan['id']}").get_json()
        assert detail["marker_count"] == 1
        assert detail["markers"][0]["id"] == marker["id"]

        found = client.get(f"/api/v1/rfis/{rfi['id']}/markers").get_json()["items"]
        assert found[0]["floor_plan_name"] == "Level 1"

    @pytest.mark.parametrize("payload", [
        {"x_percent": 101, "y_percent": 10},
        {"x_percent": -1, "y_percent": 10},
        {"x_percent": 10, "y_percent": 10, "page_number": 3},
        {"x_percent": "left", "y_percent": 10},
    ])
    def test_position_validation(self, client, plan, rfi, payload):
        res = client.post(f"/api/v1/floor-plans/{plan['id']}/markers",
                          json={"item_type": "rfi", "item_id": rfi["id"], **payload})
        assert res.status_code == 422

    def test_target_must_exist_in_project(self, client, plan):
        res = client.post(f"/api/v1/floor-plans/{plan['id']}/markers", json={
            "item_type": "task", "item_id": 999, "x_percent": 1, "y_percent": 1,
        })
        assert res.status_code == 404

    def test_inactive_plan_rejects_markers(self, client, plan, rfi):
        client.delete(f"/api/v1/floor-plans/{plan['id']}")
        res = client.post(f"/api/v1/floor-plans/{plan['id']}/markers", json={
            "item_type": "rfi", "item_id": rfi["id"], "x_percent": 1, "y_percent": 1,
        })
        assert res.status_code == 409

    def test_move_and_delete_marker(self, client, plan, rfi):
        marker = client.post(f"/api/v1/floor-plans/{plan['id']}/markers", json={
            "item_type": "rfi", "item_id": rfi["id"], "x_percent": 1, "y_percent": 1,
        }).get_json()
        res = client.put(f"/api/v1/markers/{marker['id']}", json={"x_percent": 80, "label": "moved"})
        assert res.get_json()["x_percent"] == 80
        assert res.get_json()["label"] == "moved"

        assert client.delete(f"/api/v1/markers/{marker['id']}").status_code == 200
        assert client.get(f"/api/v1/floor-plans/{plan['id']}/markers").get_json()["total"] == 0
