import pytest
from fastapi.testclient import TestClient

from app.events_service import app, get_processor
from notifications.errors import StoreError
from notifications.processor import NotificationsProcessor
from security.operator_auth import require_operator_auth


@pytest.fixture
def client(stores, dispatcher):
    processor = NotificationsProcessor(stores=stores, dispatcher=dispatcher, workers=1)
    app.dependency_overrides[get_processor] = lambda: processor
    app.dependency_overrides[require_operator_auth] = lambda: {"email": "pubsub@example.iam.gserviceaccount.com"}
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz():
    assert TestClient(app).get("/healthz").json()["ok"] is True


def test_events_require_bearer_token():
    resp = TestClient(app).post("/events", json={"name": "documents.publish", "documentId": "D"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "missing_bearer_token"


def test_publish_event_dispatches(client, stores, dispatcher):
    stores.subscribe("U1", "documents.publish")
    stores.access["U1"] = {"C"}

    resp = client.post("/events", json={"name": "documents.publish", "documentId": "D"}, headers={"x-request-id": "r-1"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "name": "documents.publish", "routed": True}
    assert resp.headers["X-Request-Id"] == "r-1"
    assert [r.user_id for r in dispatcher.documents] == ["U1"]


def test_unknown_event_is_acknowledged(client, stores):
    resp = client.post("/events", json={"name": "shares.create", "shareId": "S"})
    assert resp.status_code == 200
    assert resp.json()["routed"] is False


def test_malformed_event_is_422(client):
    resp = client.post("/events", json={"name": "collections.create"})
    assert resp.status_code == 422


def test_store_error_asks_for_redelivery(client, stores):
    stores.fail_on.add("get_document")
    resp = client.post("/events", json={"name": "documents.update.debounced", "documentId": "D"})
    assert resp.status_code == 503
    assert resp.json()["error_type"] == StoreError.__name__
