import pytest

from timekeeping.container import build_container
from timekeeping.geofence.model import GeofenceBoundary
from timekeeping.main import create_app


@pytest.fixture
def container(tmp_path):
    container = build_container(backend="memory", media_root=str(tmp_path / "media"), geofence_cache_seconds=0)
    container.geofence_repo.upsert(GeofenceBoundary(organization_id=1, lat=0.0, lng=0.0, radius_meters=200))
    return container


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def login(client, user_id=5, role="employee", organization_id=1):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["organization_id"] = organization_id


def test_requires_login(client):
    resp = client.post("/api/attendance/clock-in", json={})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_clock_in_flow_and_guard_mapping(client, png_data_url):
    login(client)

    resp = client.post(
        "/api/attendance/clock-in",
        json={"lat": 0, "lng": 0.003, "photo": png_data_url, "device": "Pixel 8"},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "pytest-browser"},
    )
    assert resp.status_code == 201
    attendance = resp.get_json()["attendance"]
    assert attendance["status"] == "pending"
    assert attendance["clock_in"]["ip"] == "203.0.113.7"
    assert attendance["clock_in"]["device"] == "Pixel 8"
    assert attendance["clock_in"]["within_geofence"] is False
    assert attendance["clock_in"]["photo"].startswith("/media/attendance/")

    photo = client.get(attendance["clock_in"]["photo"])
    assert photo.status_code == 200

    again = client.post("/api/attendance/clock-in", json={})
    assert again.status_code == 409
    assert again.get_json()["code"] == "ALREADY_CLOCKED_IN"

    today = client.get("/api/attendance/today").get_json()
    assert today["attendance"]["id"] == attendance["id"]

    out = client.post("/api/attendance/clock-out", json={"lat": 0, "lng": 0})
    assert out.status_code == 200
    assert out.get_json()["attendance"]["total_hours"] == 0.0


def test_clock_out_without_clock_in_is_conflict(client):
    login(client)

    resp = client.post("/api/attendance/clock-out", json={})

    assert resp.status_code == 409
    assert resp.get_json()["code"] == "NOT_CLOCKED_IN"


def test_admin_routes(client):
    login(client, user_id=5)
    record = client.post("/api/attendance/clock-in", json={"lat": 0, "lng": 0.003}).get_json()["attendance"]

    assert client.get("/api/attendance/overview").status_code == 403
    assert client.patch(f"/api/attendance/{record['id']}/approve").status_code == 403

    login(client, user_id=1, role="admin")
    overview = client.get("/api/attendance/overview").get_json()
    assert overview["stats"]["pending"] == 1

    approved = client.patch(f"/api/attendance/{record['id']}/approve")
    assert approved.status_code == 200
    assert approved.get_json()["attendance"]["status"] == "present"
    assert client.patch(f"/api/attendance/{record['id']}/approve").status_code == 409
    assert client.patch("/api/attendance/999/approve").status_code == 404

    weekly = client.get("/api/attendance/weekly").get_json()
    assert len(weekly["data"]) == 7


def test_history_and_bad_query(client):
    login(client)
    client.post("/api/attendance/clock-in", json={})

    history = client.get("/api/attendance/history").get_json()
    assert history["total"] == 1
    assert history["page"] == 1

    assert client.get("/api/attendance/history?user_id=6").status_code == 403
    assert client.get("/api/attendance/history?page=abc").status_code == 400


def test_timesheet_endpoints(client):
    login(client, user_id=5)

    created = client.post("/api/timesheets", json={"task": "Write tests", "collaborators": [6]})
    assert created.status_code == 201
    timesheet_id = created.get_json()["timesheet"]["id"]

    assert client.post(f"/api/timesheets/{timesheet_id}/start").status_code == 200
    again = client.post(f"/api/timesheets/{timesheet_id}/start")
    assert again.status_code == 409
    assert again.get_json()["code"] == "ALREADY_RUNNING"

    listed = client.get("/api/timesheets").get_json()["timesheets"]
    assert [t["id"] for t in listed] == [timesheet_id]
    assert listed[0]["is_running"] is True

    login(client, user_id=6)
    stopped = client.post(f"/api/timesheets/{timesheet_id}/stop")
    assert stopped.status_code == 200
    assert stopped.get_json()["timesheet"]["is_running"] is False

    login(client, user_id=7)
    assert client.post(f"/api/timesheets/{timesheet_id}/start").status_code == 403
    assert client.post("/api/timesheets/999/start").status_code == 404

    login(client, user_id=5)
    daily = client.get("/api/timesheets/totals/daily").get_json()
    assert daily["total_milliseconds"] >= 0
    assert client.get("/api/timesheets/totals/monthly?month=2025-13").status_code == 400

    assert client.patch(f"/api/timesheets/{timesheet_id}/submit").status_code == 200
    assert client.patch(f"/api/timesheets/{timesheet_id}/review", json={"note": "ok"}).status_code == 403

    login(client, user_id=1, role="admin")
    reviewed = client.patch(f"/api/timesheets/{timesheet_id}/review", json={"note": "ok"})
    assert reviewed.get_json()["timesheet"]["status"] == "reviewed"


def test_timesheet_create_validation(client):
    login(client)

    resp = client.post("/api/timesheets", json={"task": ""})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_draft_update_and_delete(client):
    login(client)
    timesheet_id = client.post("/api/timesheets", json={"task": "Draft"}).get_json()["timesheet"]["id"]

    updated = client.patch(f"/api/timesheets/{timesheet_id}", json={"task": "Renamed", "date": "2025-03-04"})
    assert updated.get_json()["timesheet"]["task"] == "Renamed"
    assert updated.get_json()["timesheet"]["date"] == "2025-03-04"

    assert client.delete(f"/api/timesheets/{timesheet_id}").status_code == 200
    assert client.get("/api/timesheets").get_json()["timesheets"] == []


def test_geofence_endpoints(client):
    login(client)
    assert client.get("/api/geofence").get_json()["geofence"]["radius_meters"] == 200
    assert client.put("/api/geofence", json={"lat": 0, "lng": 0, "radius": 300}).status_code == 403

    login(client, user_id=1, role="admin")
    assert client.put("/api/geofence", json={"lat": 0, "lng": 0, "radius": 10}).status_code == 400

    resp = client.put("/api/geofence", json={"lat": 10.77, "lng": 106.7, "radius": 300, "office_name": "HCM"})
    assert resp.status_code == 200
    assert client.get("/api/geofence").get_json()["geofence"]["office_name"] == "HCM"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_get_single_timesheet(client):
    login(client, user_id=5)
    timesheet_id = client.post("/api/timesheets", json={"task": "Review PR", "collaborators": [6]}).get_json()["timesheet"]["id"]

    own = client.get(f"/api/timesheets/{timesheet_id}")
    assert own.status_code == 200
    assert own.get_json()["timesheet"]["task"] == "Review PR"

    login(client, user_id=6)
    assert client.get(f"/api/timesheets/{timesheet_id}").status_code == 200

    login(client, user_id=7)
    assert client.get(f"/api/timesheets/{timesheet_id}").status_code == 403

    login(client, user_id=1, role="admin")
    assert client.get(f"/api/timesheets/{timesheet_id}").status_code == 200
    assert client.get("/api/timesheets/999").status_code == 404
