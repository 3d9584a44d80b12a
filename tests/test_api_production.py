"""
BuildTrack
Tests — Factory modules and QC inspections.
"""


def _module(client, pid, serial, **kw):
    res = client.post(f"/api/v1/projects/{pid}/modules", json={"serial_number": serial, **kw})
    assert res.status_code == 201, res.get_json()
    return res.get_json()


class TestModules:
    def test_create_and_list(self, client, project):
        pid = project["id"]
        _module(client, pid, "NW-0002", building_section="B")
        _module(client, pid, "NW-0001", building_section="A", station="Framing")
        data = client.get(f"/api/v1/projects/{pid}/modules").get_json()
        assert [m["serial_number"] for m in data["items"]] == ["NW-0001", "NW-0002"]
        assert data["items"][0]["status"] == "Not Started"

    def test_serial_is_unique(self, client, project):
        _module(client, project["id"], "NW-0001")
        res = client.post(f"/api/v1/projects/{project['id']}/modules", json={"serial_number": "NW-0001"})
        assert res.status_code == 409

    def test_update_status(self, client, project):
        mod = _module(client, project["id"], "NW-0001")
        res = client.put(f"/api/v1/modules/{mod['id']}", json={"status": "In Progress", "station": "Roof"})
        assert res.get_json()["status"] == "In Progress"
        assert client.put(f"/api/v1/modules/{mod['id']}", json={"status": "Lost"}).status_code == 422


class TestQC:
    def test_failed_inspection_puts_module_on_hold(self, client, project):
        mod = _module(client, project["id"], "NW-0001", status="In Progress")
        res = client.post(f"/api/v1/modules/{mod['id']}/qc", json={
            "inspector": "R. Chen", "passed": False, "defects_found": 3, "notes": "Drywall seams",
        })
        assert res.status_code == 201
        body = res.get_json()
        assert body["record"]["defects_found"] == 3
        assert body["module"]["status"] == "QC Hold"

    def test_shipped_module_keeps_status(self, client, project):
        mod = _module(client, project["id"], "NW-0001", status="Shipped")
        body = client.post(f"/api/v1/modules/{mod['id']}/qc", json={"passed": False}).get_json()
        assert body["module"]["status"] == "Shipped"

    def test_negative_defects(self, client, project):
        mod = _module(client, project["id"], "NW-0001")
        res = client.post(f"/api/v1/modules/{mod['id']}/qc", json={"defects_found": -1})
        assert res.status_code == 422

    def test_summary(self, client, project):
        pid = project["id"]
        a = _module(client, pid, "NW-0001")
        b = _module(client, pid, "NW-0002")
        client.post(f"/api/v1/modules/{a['id']}/qc", json={"passed": True, "defects_found": 0})
        client.post(f"/api/v1/modules/{a['id']}/qc", json={"passed": True, "defects_found": 1})
        client.post(f"/api/v1/modules/{b['id']}/qc", json={"passed": False, "defects_found": 4})

        summary = client.get(f"/api/v1/projects/{pid}/qc-summary").get_json()
        assert summary["modules"] == 2
        assert summary["modules_on_hold"] == 1
        assert summary["inspections"] == 3
        assert summary["passed"] == 2
        assert summary["failed"] == 1
        assert summary["pass_rate"] == 66.7
        assert summary["defects"] == 5

        records = client.get(f"/api/v1/modules/{a['id']}/qc").get_json()
        assert records["total"] == 2

    def test_empty_summary(self, client, project):
        summary = client.get(f"/api/v1/projects/{project['id']}/qc-summary").get_json()
        assert summary["pass_rate"] == 0.0
        assert summary["inspections"] == 0
