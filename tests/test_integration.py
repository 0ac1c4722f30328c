import pytest
from fastapi.testclient import TestClient

from src.shiptrack.api.routes import realtime as realtime_routes
from src.shiptrack.auth import DRIVER_ROLE, create_access_token
from src.shiptrack.main import create_app
from src.shiptrack.models.domain import Shipment, ShipmentStatus
from src.shiptrack.persistence.shipments import InMemoryShipmentRepository
from src.shiptrack.services.catalog import STATUS_MESSAGES


def _headers(role: str = "customer", subject: str = "user-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, role)}"}


def _producer_url(subject: str = "driver-1") -> str:
    return f"/ws?token={create_access_token(subject, DRIVER_ROLE)}"


@pytest.fixture
def repository() -> InMemoryShipmentRepository:
    return InMemoryShipmentRepository(
        [
            Shipment(
                shipment_id="S1",
                customer_email="c@example.com",
                customer_phone="+15551234567",
                origin="Jeddah",
                destination="Riyadh",
                driver_id="driver-1",
            ),
            Shipment(shipment_id="S2", customer_email="other@example.com"),
        ]
    )


@pytest.fixture
def app(repository, channels):
    return create_app(repository=repository, channels=channels)


def test_shipment_crud(app):
    with TestClient(app) as client:
        created = client.post(
            "/api/shipments",
            json={"shipment_id": "S3", "customer_email": "new@example.com", "destination": "Dammam"},
            headers=_headers(),
        )
        assert created.status_code == 201
        assert created.json()["status"] == "pending"

        duplicate = client.post("/api/shipments", json={"shipment_id": "S3"}, headers=_headers())
        assert duplicate.status_code == 409

        listed = client.get("/api/shipments", headers=_headers())
        assert {item["shipment_id"] for item in listed.json()["items"]} == {"S1", "S2", "S3"}

        patched = client.patch("/api/shipments/S3", json={"status": "dispatched"}, headers=_headers())
        assert patched.status_code == 200
        assert patched.json()["status"] == "dispatched"

        invalid = client.patch("/api/shipments/S3", json={"status": "teleported"}, headers=_headers())
        assert invalid.status_code == 422

        assert client.delete("/api/shipments/S3", headers=_headers()).status_code == 204
        assert client.get("/api/shipments/S3", headers=_headers()).status_code == 404


def test_public_tracking_lookup(app):
    with TestClient(app) as client:
        found = client.get("/api/public/track/S1")
        missing = client.get("/api/public/track/NOPE")

    assert found.status_code == 200
    payload = found.json()
    assert payload["status"] == "pending"
    assert payload["status_message"] == STATUS_MESSAGES[ShipmentStatus.PENDING]
    assert payload["destination"] == "Riyadh"
    assert missing.status_code == 404


def test_websocket_broadcast_is_scoped_to_topic(app, email_transport, sms_transport):
    with TestClient(app) as client:
        with client.websocket_connect("/ws/shipments/S1") as first, client.websocket_connect(
            "/ws/shipments/S1"
        ) as second, client.websocket_connect("/ws/shipments/S2") as elsewhere:
            for ws in (first, second, elsewhere):
                assert ws.receive_json()["type"] == "subscribed"

            with client.websocket_connect(_producer_url()) as producer:
                assert producer.receive_json()["type"] == "connected"
                producer.send_json(
                    {
                        "type": "updateLocation",
                        "shipmentId": "S1",
                        "location": {"lat": 21.5, "lng": 39.2},
                        "status": "in_transit",
                    }
                )
                assert producer.receive_json() == {"type": "accepted", "shipmentId": "S1", "delivered": 2}

            expected = {
                "type": "locationUpdate",
                "shipmentId": "S1",
                "location": {"lat": 21.5, "lng": 39.2},
                "status": "in_transit",
            }
            assert first.receive_json() == expected
            assert second.receive_json() == expected

            # Anything broadcast to S2 would already be queued ahead of the pong
            elsewhere.send_json({"type": "ping"})
            assert elsewhere.receive_json() == {"type": "pong"}

    # Leaving the client drains the background notification stage
    assert email_transport.sent[0][0] == "c@example.com"
    assert sms_transport.sent[0][0] == "+15551234567"


def test_websocket_subscribe_messages_and_malformed_update(app, email_transport):
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as observer, client.websocket_connect(_producer_url()) as producer:
            observer.receive_json()
            producer.receive_json()

            observer.send_json({"type": "subscribe", "shipmentId": "S2"})
            assert observer.receive_json() == {"type": "subscribed", "shipmentId": "S2"}

            producer.send_json({"type": "updateLocation", "location": {}, "status": "delivered"})
            error = producer.receive_json()
            assert error["type"] == "error"
            assert error["code"] == "malformed_event"

            producer.send_json({"type": "updateLocation", "shipmentId": "S2", "status": "mystery"})
            assert producer.receive_json()["delivered"] == 1
            assert observer.receive_json()["status"] == "mystery"

            observer.send_json({"type": "unsubscribe", "shipmentId": "S2"})
            assert observer.receive_json() == {"type": "unsubscribed", "shipmentId": "S2"}

            producer.send_text("not json")
            assert producer.receive_json()["code"] == "invalid_json"

    assert [sent[0] for sent in email_transport.sent] == ["other@example.com"]


def test_websocket_producer_needs_driver_token(app):
    update = {"type": "updateLocation", "shipmentId": "S2", "status": "dispatched"}

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as anonymous:
            anonymous.receive_json()
            anonymous.send_json(update)
            assert anonymous.receive_json()["code"] == "unauthenticated"

        customer_token = create_access_token("user-1", "customer")
        with client.websocket_connect(f"/ws?token={customer_token}") as customer:
            customer.receive_json()
            customer.send_json(update)
            assert customer.receive_json()["code"] == "forbidden"

        driver_token = create_access_token("driver-1", DRIVER_ROLE)
        with client.websocket_connect(f"/ws?token={driver_token}") as driver:
            driver.receive_json()
            driver.send_json(update)
            assert driver.receive_json()["type"] == "accepted"


def test_driver_update_persists_and_broadcasts(app, repository, email_transport):
    with TestClient(app) as client:
        with client.websocket_connect("/ws/shipments/S1") as observer:
            observer.receive_json()
            response = client.post(
                "/api/drivers/shipments/S1/location",
                json={"location": {"lat": 24.7, "lng": 46.7}, "status": "out_for_delivery", "device_token": "tok"},
                headers=_headers(DRIVER_ROLE, subject="driver-1"),
            )
            assert response.status_code == 202
            assert response.json()["subscribers_notified"] == 1
            assert observer.receive_json()["status"] == "out_for_delivery"

        other_driver = client.post(
            "/api/drivers/shipments/S1/location",
            json={"location": {}, "status": "delivered"},
            headers=_headers(DRIVER_ROLE, subject="driver-2"),
        )
        assert other_driver.status_code == 403

    stored = repository.find_by_id("S1")
    assert stored.status == "out_for_delivery"
    assert stored.last_location == {"lat": 24.7, "lng": 46.7}
    assert email_transport.sent[0][2] == STATUS_MESSAGES[ShipmentStatus.OUT_FOR_DELIVERY]


def test_health_endpoints(app):
    with TestClient(app) as client:
        assert client.get("/api/health").json() == {"status": "ok"}
        realtime = client.get("/api/health/realtime").json()

    assert realtime == {"connections": 0, "topics": 0, "pending_notifications": 0}


def test_anonymous_producer_allowed_when_auth_disabled(app, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(realtime_routes.settings, "realtime_require_auth", False)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as anonymous:
            anonymous.receive_json()
            anonymous.send_json({"type": "updateLocation", "shipmentId": "S2", "status": "dispatched"})
            assert anonymous.receive_json() == {"type": "accepted", "shipmentId": "S2", "delivered": 0}
