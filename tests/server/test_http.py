from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from vehicle_dashboard.config import SourcePaths
from vehicle_dashboard.server.dashboard_server import create_server

PATHS = SourcePaths()


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_server(service).streamable_http_app())


def test_health_does_not_touch_remote(client, fake_transport) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert fake_transport.commands == []


def test_alcohol(client) -> None:
    resp = client.get("/alcohol")
    assert resp.status_code == 200
    body = resp.json()
    assert [r["sensorValue"] for r in body] == [323, 410]
    assert body[0]["vehicleNumber"] == "N/A"


def test_sensor_time_filter(client) -> None:
    resp = client.get("/alcohol", params={"startTime": "2025-07-01T08:00:00Z", "endTime": "2025-07-01T09:00:00Z"})
    assert [r["sensorValue"] for r in resp.json()] == [410]


def test_sensor_bad_time_is_400(client) -> None:
    resp = client.get("/visibility", params={"startTime": "last tuesday"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid startTime: 'last tuesday'"


def test_obd_vehicle_filter(client) -> None:
    resp = client.get("/obd", params={"vehicleNumber": "MH12AB1234"})
    body = resp.json()
    assert len(body) == 2
    assert body[0]["SpeedOBDkmh"] == 42
    assert body[0]["GPSTime"] == "2025-07-01T08:00:05+00:00"


def test_drowsiness_and_visibility(client) -> None:
    assert len(client.get("/drowsiness").json()) == 3
    assert [r["imageName"] for r in client.get("/visibility").json()] == ["img_001.jpg", "img_002.jpg"]


def test_complaints_and_feedback(client) -> None:
    complaints = client.get("/complaints").json()
    assert complaints[0]["vehicleNumber"] == "MH12AB1234"
    assert complaints[0]["status"] == "Pending"

    feedback = client.get("/feedback").json()
    assert [f["id"] for f in feedback] == ["FDBK002", "FDBK001", "FDBK003"]
    assert feedback[1]["rating"] == 4


def test_history_ignores_parameters(client) -> None:
    resp = client.get("/history", params={"vehicleNumber": "KA01XY9999"})
    assert len(resp.json()) == 3


def test_tickets_are_served_as_stored(client) -> None:
    tickets = client.get("/tickets").json()
    assert [t["id"] for t in tickets] == ["TCK001", "TCK002", "TCK003"]
    assert tickets[1]["description"] == 'Said "fixed" but wasn\'t'


def test_update_ticket(client, fake_transport) -> None:
    resp = client.put("/tickets", params={"id": "TCK001"}, json={"status": "Resolved", "adminResponse": "Done"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Ticket updated successfully"
    assert body["ticket"]["status"] == "Resolved"
    assert body["ticket"]["adminResponse"] == "Done"
    assert body["ticket"]["updatedAt"] == "2025-07-01T12:00:00+00:00"

    tickets = client.get("/tickets").json()
    assert tickets[0]["status"] == "Resolved"
    assert tickets[2]["status"] == "processing"


@pytest.mark.parametrize(
    ("params", "kwargs", "status", "message"),
    [
        ({}, {"json": {"status": "Resolved"}}, 400, "Ticket ID is required"),
        ({"id": "TCK001"}, {"json": {}}, 400, "No update data provided"),
        ({"id": "TCK001"}, {}, 400, "No update data provided"),
        ({"id": "TCK001"}, {"json": {"status": "Done"}}, 400, "Invalid update data"),
        ({"id": "TCK001"}, {"json": ["status"]}, 400, "Request body must be a JSON object"),
        ({"id": "TCK001"}, {"content": b"{not json"}, 400, "Invalid JSON body"),
        ({"id": "CMPLT999"}, {"json": {"status": "Resolved"}}, 404, "Ticket not found"),
    ],
)
def test_update_ticket_errors(client, fake_transport, params, kwargs, status, message) -> None:
    resp = client.put("/tickets", params=params, **kwargs)

    assert resp.status_code == status
    assert resp.json()["message"] == message
    assert "error" in resp.json()
    assert fake_transport.writes == []


def test_remote_failure_is_500_with_diagnostics(client, fake_transport) -> None:
    fake_transport.failing.add(PATHS.alcohol)

    resp = client.get("/alcohol")

    assert resp.status_code == 500
    assert resp.json() == {
        "message": "Failed to fetch alcohol data",
        "error": f"tail: cannot open '{PATHS.alcohol}'",
    }


def test_write_failure_is_500(client, fake_transport) -> None:
    fake_transport.fail_writes = True
    resp = client.put("/tickets", params={"id": "TCK001"}, json={"priority": "Low"})
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to update ticket"


def test_unexpected_error_is_500(client, service, monkeypatch) -> None:
    async def boom():
        raise RuntimeError("kaput")

    monkeypatch.setattr(service, "complaints", boom)
    resp = client.get("/complaints")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to fetch complaints data", "error": "kaput"}


def test_vehicle_history(client) -> None:
    body = client.get("/vehicle-history", params={"vehicleNumber": "MH12AB1234"}).json()

    assert body["vehicleNumber"] == "MH12AB1234"
    assert body["count"] == 6
    assert body["records"][0]["source"] == "OBD CSV"
    assert body["records"][1]["type"] == "alert"
    assert body["unavailableSources"] == {}


def test_vehicle_history_window(client) -> None:
    body = client.get(
        "/vehicle-history",
        params={"vehicleNumber": "MH12AB1234", "startTime": "2025-07-01T08:01:00Z", "endTime": "2025-07-01T08:05:00Z"},
    ).json()
    assert [r["displayTimestamp"] for r in body["records"]] == [
        "2025-07-01T08:01:00+00:00",
        "2025-07-01T08:02:00+00:00",
        "2025-07-01T08:05:00+00:00",
    ]


def test_vehicle_history_inverted_window_is_400(client) -> None:
    resp = client.get(
        "/vehicle-history",
        params={"vehicleNumber": "MH12AB1234", "startTime": "2025-07-02T00:00:00Z", "endTime": "2025-07-01T00:00:00Z"},
    )
    assert resp.status_code == 400


def test_ticket_history(client) -> None:
    body = client.get("/tickets/history", params={"id": "TCK001"}).json()

    assert body["ticket"]["id"] == "TCK001"
    assert body["windowStart"] == "2025-07-01T07:45:00+00:00"
    assert body["windowEnd"] == "2025-07-01T08:45:00+00:00"
    assert body["count"] == 4


def test_ticket_history_errors(client) -> None:
    assert client.get("/tickets/history").status_code == 400
    assert client.get("/tickets/history", params={"id": "NOPE"}).status_code == 404


def test_stats(client) -> None:
    body = client.get("/stats").json()
    assert body["tickets"]["total"] == 3
    assert body["complaints"] == {"total": 2, "pending": 2}
