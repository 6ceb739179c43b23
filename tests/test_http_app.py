"""
Tests for the FastAPI surface.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedTransport
from project_events.http import create_app


@pytest.fixture
def make_client(make_publisher):
    def _make(transport):
        publisher = make_publisher(transport)
        return TestClient(create_app(publisher)), publisher

    return _make


def test_healthz(make_client):
    client, _ = make_client(ScriptedTransport())
    with client:
        response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_events_health(make_client):
    client, _ = make_client(ScriptedTransport())
    with client:
        response = client.get("/events/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["transport_kind"] == "scripted"


def test_events_health_unhealthy_returns_503(make_client):
    client, _ = make_client(ScriptedTransport(healthy=False))
    with client:
        response = client.get("/events/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_publish_accepted(make_client, created_event):
    transport = ScriptedTransport()
    client, publisher = make_client(transport)
    with client:
        response = client.post(
            "/events/project.created",
            json=created_event,
            headers={"X-Correlation-ID": "req-42"},
        )
        metrics = client.get("/events/metrics").json()

    assert response.status_code == 200
    assert response.json() == {
        "accepted": True,
        "event_type": "project.created",
        "correlation_id": "req-42",
    }
    assert transport.calls[0]["options"].correlation_id == "req-42"
    assert metrics["project_created_success"] == 1


def test_publish_unknown_event_type_is_404(make_client):
    client, _ = make_client(ScriptedTransport())
    with client:
        response = client.post("/events/project.exploded", json={})

    assert response.status_code == 404


def test_publish_invalid_payload_is_422(make_client):
    transport = ScriptedTransport()
    client, _ = make_client(transport)
    with client:
        response = client.post("/events/project.updated", json={"projectId": "p"})

    assert response.status_code == 422
    assert transport.calls == []


def test_publish_high_priority_failure_is_502(make_client, deleted_event):
    client, _ = make_client(ScriptedTransport(fail_times=None))
    with client:
        response = client.post("/events/project.deleted", json=deleted_event)

    assert response.status_code == 502
    assert "after 5 attempts" in response.json()["detail"]


def test_publish_best_effort_failure_is_still_accepted(make_client, updated_event):
    client, publisher = make_client(ScriptedTransport(fail_times=None))
    with client:
        response = client.post("/events/project.updated", json=updated_event)

    assert response.status_code == 200
    assert publisher.get_metrics()["project_updated_error"] == 1


def test_metrics_reset(make_client, updated_event):
    client, publisher = make_client(ScriptedTransport())
    with client:
        client.post("/events/project.updated", json=updated_event)
        response = client.post("/events/metrics/reset")
        metrics = client.get("/events/metrics").json()

    assert response.status_code == 200
    assert metrics == {}


def test_lifespan_closes_publisher(make_client):
    transport = ScriptedTransport()
    client, publisher = make_client(transport)
    with client:
        assert publisher.scheduler.running

    assert transport.closed
    assert not publisher.scheduler.running
