"""
BuildTrack
Tests — Project API.

Covers:
    - Project CRUD + validation
    - Delete is refused (close by status)
    - Overview (health, attention, key dates)
    - Factory catalogue
    - Health probes
"""

from conftest import make_project


class TestProjectCRUD:
    def test_create_project(self, client):
        res = client.post("/api/v1/projects", json={
            "project_number": "P-2001",
            "name": "Harbor Clinic",
            "factory": "NWBS - Northwest Building Systems",
            "module_count": "24",
            "contract_value": "1250000.50",
            "target_online_date": "2026-06-01",
        })
        assert res.status_code == 201
        data = res.get_json()
        assert data["status"] == "Planning"
        assert data["factory"] == "NWBS"
        assert data["factory_name"] == "Northwest Building Systems"
        assert data["module_count"] == 24
        assert data["contract_value"] == 1250000.5
        assert data["target_online_date"] == "2026-06-01"

    def test_create_requires_number_and_name(self, client):
        res = client.post("/api/v1/projects", json={"name": "No number"})
        assert res.status_code == 400
        assert "project_number" in res.get_json()["error"]

    def test_duplicate_number_conflicts(self, client, project):
        res = client.post("/api/v1/projects", json={"project_number": "P-1001", "name": "Again"})
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"

    def test_unknown_factory_rejected(self, client):
        res = client.post("/api/v1/projects", json={
            "project_number": "P-3", "name": "X", "factory": "ACME",
        })
        assert res.status_code == 422
        assert res.get_json()["details"] == {"factory": "invalid"}

    def test_invalid_status_rejected(self, client, project):
        res = client.put(f"/api/v1/projects/{project['id']}", json={"status": "Archived"})
        assert res.status_code == 422

    def test_update_project(self, client, project):
        res = client.put(f"/api/v1/projects/{project['id']}", json={
            "status": "In Progress", "pm_name": "Sam Lee", "delivery_date": "2026-04-01",
        })
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "In Progress"
        assert data["pm_name"] == "Sam Lee"
        assert data["delivery_date"] == "2026-04-01"

    def test_get_missing_project(self, client):
        assert client.get("/api/v1/projects/999").status_code == 404

    def test_list_filters(self, client):
        make_project(client, project_number="P-1", name="Alpha Lofts")
        make_project(client, project_number="P-2", name="Beta Homes", status="Completed")
        res = client.get("/api/v1/projects?include_closed=0")
        assert [p["project_number"] for p in res.get_json()["items"]] == ["P-1"]
        res = client.get("/api/v1/projects?search=beta")
        assert res.get_json()["total"] == 1

    def test_delete_is_refused(self, client, project):
        res = client.delete(f"/api/v1/projects/{project['id']}")
        assert res.status_code == 409
        assert client.get(f"/api/v1/projects/{project['id']}").status_code == 200


class TestOverview:
    def test_overview_scores_project(self, client, project):
        pid = project["id"]
        for i in range(10):
            payload = {"title": f"Task {i}", "due_date": "2026-03-01"}
            if i < 3:
                payload["status"] = "Completed"
            elif i < 5:
                payload["due_date"] = "2026-01-06"
            res = client.post(f"/api/v1/projects/{pid}/tasks", json=payload)
            assert res.status_code == 201

        res = client.get(f"/api/v1/projects/{pid}/overview?today=2026-01-14")
        assert res.status_code == 200
        data = res.get_json()
        assert data["health"]["score"] == 75
        assert data["health"]["status"] == "At Risk"
        assert data["all_clear"] is False
        assert [a["severity"] for a in data["attention"]] == ["critical", "critical"]
        assert data["counts"]["tasks"]["overdue"] == 2

    def test_empty_project_is_all_clear(self, client, project):
        data = client.get(f"/api/v1/projects/{project['id']}/overview").get_json()
        assert data["all_clear"] is True
        assert data["health"]["score"] == 100


class TestCatalogAndHealth:
    def test_factory_catalog(self, client):
        data = client.get("/api/v1/factories").get_json()
        codes = [f["code"] for f in data["factories"]]
        assert "NWBS" in codes
        assert isinstance(data["version"], int)

    def test_health_probes(self, client):
        assert client.get("/api/v1/health").get_json() == {"status": "ok"}
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "ok"

    def test_request_id_header(self, client):
        res = client.get("/api/v1/health/ready")
        assert res.headers.get("X-Request-ID")
