import pytest
from fastapi.testclient import TestClient

from conftest import RecordingRadio
from gymtag.api.app import app
from gymtag.api.state import AppState, get_state


@pytest.fixture
def state():
    return AppState(radio=RecordingRadio())


@pytest.fixture
def client(state):
    app.dependency_overrides[get_state] = lambda: state
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _record_json():
    return {"equipmentId": "42", "name": "Rower", "time": "2024-01-01 09:00", "status": "active"}


def test_status_before_any_operation(client):
    body = client.get("/api/nfc/status").json()
    assert body == {"supported": None, "started": False, "session": "idle", "simulated": True}


def test_simulate_then_scan(client, state):
    r = client.post("/api/nfc/simulate", json={"record": _record_json()})
    assert r.status_code == 200
    assert r.json()["raw_hex"].startswith("d101")

    r = client.post("/api/nfc/scan")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "record": _record_json(), "error": None, "detail": ""}
    assert state.radio.calls["release"] == 1


def test_scan_blank_tag(client):
    client.post("/api/nfc/simulate", json={})
    r = client.post("/api/nfc/scan")
    assert r.status_code == 422
    assert r.json()["error"] == "empty_message"


def test_scan_raw_garbage(client):
    client.post("/api/nfc/simulate", json={"raw_hex": "d1010454" + "02656eff"})
    r = client.post("/api/nfc/scan")
    assert r.status_code == 422
    assert r.json()["error"] == "encoding_error"


def test_simulate_rejects_bad_hex(client):
    assert client.post("/api/nfc/simulate", json={"raw_hex": "zz"}).status_code == 400


def test_write_then_read_back(client):
    client.post("/api/nfc/simulate", json={})
    r = client.post("/api/nfc/write", json={"name": "Treadmill"})
    assert r.status_code == 200
    written = r.json()["record"]
    assert written["name"] == "Treadmill"
    assert written["status"] == "active"
    assert 1 <= int(written["equipmentId"]) <= 1000

    r = client.post("/api/nfc/write", json={"name": "Treadmill2", "preserve": True})
    renamed = r.json()["record"]
    assert renamed["equipmentId"] == written["equipmentId"]
    assert renamed["time"] == written["time"]
    assert renamed["name"] == "Treadmill2"

    assert client.post("/api/nfc/scan").json()["record"] == renamed


def test_write_empty_name(client, state):
    r = client.post("/api/nfc/write", json={"name": "  "})
    assert r.status_code == 400
    assert r.json()["error"] == "empty_name"
    assert state.radio.calls["request_exclusive_access"] == 0


def test_preserve_without_previous(client):
    r = client.post("/api/nfc/write", json={"name": "Bike", "preserve": True})
    assert r.status_code == 400


def test_preview_with_previous(client, state):
    r = client.post(
        "/api/equipment/preview",
        json={"name": "Rower XL", "preserve": True, "previous": _record_json()},
    )
    assert r.status_code == 200
    assert r.json()["record"] == {**_record_json(), "name": "Rower XL"}
    assert sum(state.radio.calls.values()) == 0


def test_cancel_with_nothing_in_flight(client):
    assert client.post("/api/nfc/cancel").json() == {"ok": True, "cancelled": False}


def test_not_supported():
    state = AppState(radio=RecordingRadio(supported=False))
    app.dependency_overrides[get_state] = lambda: state
    try:
        with TestClient(app) as c:
            r = c.post("/api/nfc/scan")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503
    assert r.json()["error"] == "not_supported"


def test_get_simulated_tag(client):
    assert client.get("/api/nfc/simulate").json() == {"present": False, "raw_hex": None}
    client.post("/api/nfc/simulate", json={"raw_hex": "d00000"})
    assert client.get("/api/nfc/simulate").json() == {"present": True, "raw_hex": "d00000"}
    client.post("/api/nfc/simulate", json={"remove": True})
    assert client.get("/api/nfc/simulate").json()["present"] is False


def test_get_simulated_tag_needs_simulated_radio():
    class HostRadio:
        pass

    app.dependency_overrides[get_state] = lambda: AppState(radio=HostRadio())
    try:
        with TestClient(app) as c:
            assert c.get("/api/nfc/simulate").status_code == 404
    finally:
        app.dependency_overrides.clear()
