# backend/tests/test_api.py
from __future__ import annotations

from conftest import basic_template_payload

SUPERVISOR = {"X-Org-Slug": "demo", "X-User-Id": "sup-1", "X-User-Role": "supervisor"}
TECH = {"X-Org-Slug": "demo", "X-User-Id": "tech-1", "X-User-Role": "technician"}


def _start(client) -> dict:
    r = client.post("/api/templates", headers=SUPERVISOR, json=basic_template_payload())
    assert r.status_code == 201, r.text
    tmpl = r.json()

    r = client.post("/api/inspections", headers=TECH, json={"template_id": tmpl["id"], "asset_id": "unit-42"})
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers.get("X-Request-ID")


def test_full_inspection_flow(client):
    insp = _start(client)
    assert insp["status"] == "in_progress"
    assert insp["inspector_id"] == "tech-1"
    assert insp["progress"] == 0

    for item, status in zip(insp["items"], ["passed", "passed", "failed"]):
        r = client.patch(
            f"/api/inspections/{insp['id']}/items/{item['id']}",
            headers=TECH,
            json={"status": status},
        )
        assert r.status_code == 200, r.text
    assert r.json()["progress"] == 100

    r = client.post(f"/api/inspections/{insp['id']}/complete", headers=TECH, json={"notes": "ready"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "completed"

    r = client.post(f"/api/inspections/{insp['id']}/signoffs", headers=SUPERVISOR, json={"outcome": "approve"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["signoffs"][0]["user_id"] == "sup-1"
    assert body["signoffs"][0]["role"] == "supervisor"

    r = client.get(f"/api/inspections/{insp['id']}/summary", headers=TECH)
    assert r.status_code == 200
    assert r.json()["passed"] == 2
    assert r.json()["failed"] == 1

    r = client.get("/api/dashboard/stats", headers=TECH)
    assert r.json()["inspections_by_status"]["approved"] == 1


def test_errors_map_to_status_codes(client):
    insp = _start(client)

    r = client.get("/api/inspections/does-not-exist", headers=TECH)
    assert r.status_code == 404
    assert r.json()["error"] == "inspection_not_found"

    r = client.patch(f"/api/inspections/{insp['id']}/items/nope", headers=TECH, json={"status": "passed"})
    assert r.status_code == 404
    assert r.json()["error"] == "item_not_found"

    r = client.post(f"/api/inspections/{insp['id']}/signoffs", headers=SUPERVISOR, json={"outcome": "approve"})
    assert r.status_code == 409
    assert r.json()["error"] == "invalid_transition"

    r = client.post(f"/api/inspections/{insp['id']}/defects", headers=TECH, json={"title": " "})
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"


def test_role_guards(client):
    r = client.post("/api/templates", headers=TECH, json=basic_template_payload())
    assert r.status_code == 403

    r = client.post("/api/templates", headers=SUPERVISOR, json=basic_template_payload())
    tmpl_id = r.json()["id"]
    r = client.delete(f"/api/templates/{tmpl_id}", headers=SUPERVISOR)
    assert r.status_code == 403

    admin = {**SUPERVISOR, "X-User-Role": "admin"}
    r = client.delete(f"/api/templates/{tmpl_id}", headers=admin)
    assert r.status_code == 204
    assert client.get(f"/api/templates/{tmpl_id}", headers=TECH).status_code == 404


def test_template_duplicate_and_update(client):
    r = client.post("/api/templates", headers=SUPERVISOR, json=basic_template_payload())
    tmpl = r.json()

    r = client.post(f"/api/templates/{tmpl['id']}/duplicate", headers=SUPERVISOR)
    assert r.status_code == 201
    assert r.json()["name"] == "Basic PDI (Copy)"

    r = client.put(f"/api/templates/{tmpl['id']}", headers=SUPERVISOR, json={"description": "2026 model year"})
    assert r.status_code == 200
    assert r.json()["version"] == 2
    assert r.json()["id"] == tmpl["id"]

    r = client.get("/api/templates", headers=TECH)
    assert len(r.json()) == 2


def test_defects_photos_and_follow_up(client):
    insp = _start(client)
    iid = insp["id"]

    r = client.post(
        f"/api/inspections/{iid}/defects",
        headers=TECH,
        json={"title": "Awning torn", "severity": "high", "item_id": insp["items"][2]["id"]},
    )
    assert r.status_code == 201, r.text
    defect = r.json()
    assert defect["status"] == "open"

    r = client.post(f"/api/inspections/{iid}/photos", headers=TECH, json={"url": "s3://pdi/awning.jpg", "defect_id": defect["id"]})
    assert r.status_code == 201
    assert r.json()["uploaded_by"] == "tech-1"

    r = client.get(f"/api/inspections/{iid}/task", headers=TECH)
    assert r.status_code == 200
    assert r.json()["priority"] == "high"
    assert r.json()["source_type"] == "pdi_inspection"

    r = client.post(f"/api/inspections/{iid}/task", headers=TECH)
    assert r.status_code == 200
    assert [d["priority"] for d in r.json()] == ["high", "urgent"]

    r = client.patch(f"/api/inspections/{iid}/defects/{defect['id']}", headers=TECH, json={"status": "resolved"})
    assert r.status_code == 200
    assert r.json()["resolved_at"]

    r = client.get(f"/api/inspections/{iid}/calendar", headers=TECH)
    assert r.json()["id"] == f"pdi-{iid}"


def test_list_and_patch_inspections(client):
    insp = _start(client)

    r = client.get("/api/inspections", headers=TECH, params={"status": "in_progress", "search": "unit-4"})
    assert [row["id"] for row in r.json()] == [insp["id"]]

    r = client.get("/api/inspections", headers=TECH, params={"status": "approved"})
    assert r.json() == []

    r = client.patch(f"/api/inspections/{insp['id']}", headers=TECH, json={"notes": "customer pickup friday"})
    assert r.status_code == 200
    assert r.json()["notes"] == "customer pickup friday"


def test_reopen_requires_admin(client):
    insp = _start(client)
    r = client.post(f"/api/inspections/{insp['id']}/reopen", headers=SUPERVISOR)
    assert r.status_code == 403
