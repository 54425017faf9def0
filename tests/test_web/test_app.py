"""
Tests for the Flask application shell: monitoring routes, headers and
error handling.
"""
import pytest

from tech_incidents.config import AppConfig
from tech_incidents.exceptions import BackendTimeoutError
from tech_incidents.session import STATE_KEY, get_state
from tech_incidents.web.app import create_app


def test_state_registered(app, app_config, backend):
    state = get_state(app)

    assert app.extensions[STATE_KEY] is state
    assert state.config is app_config
    assert state.backend is backend


def test_upload_limit(app):
    assert app.config["MAX_CONTENT_LENGTH"] == 10 * 1024 * 1024


def test_invalid_config_rejected(backend):
    with pytest.raises(ValueError, match="request_timeout"):
        create_app(config=AppConfig(request_timeout=0), backend=backend)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_ready(client):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ready"


def test_not_ready(backend):
    client = create_app(config=AppConfig(environment="test"), backend=backend).test_client()

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.get_json()["checks"]["config"] is False


def test_version(client):
    assert client.get("/version").get_json()["platform"] == "tech-incidents"


def test_metrics_endpoint(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    text = response.get_data(as_text=True)
    assert 'tech_incidents_http_requests_total{endpoint="/health",method="GET",status="200"} 1' in text


class TestHeaders:
    """Tests for CORS, security and request id headers."""

    def test_cors_on_api_routes(self, client):
        response = client.get("/api/fetch-incidents")

        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "DELETE" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Headers"] == "Authorization, Content-Type"

    def test_no_cors_outside_api(self, client):
        assert "Access-Control-Allow-Origin" not in client.get("/health").headers

    def test_preflight(self, client, backend):
        response = client.options("/api/new-incident")

        assert response.status_code == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        backend.create_incident.assert_not_called()

    def test_security_headers(self, client):
        headers = client.get("/health").headers

        assert headers["X-Content-Type-Options"] == "nosniff"
        assert headers["X-Frame-Options"] == "DENY"

    def test_request_id_generated(self, client):
        assert len(client.get("/health").headers["X-Request-ID"]) == 16

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-me"})

        assert response.headers["X-Request-ID"] == "trace-me"


class TestErrorEnvelope:
    """Tests for error normalization."""

    def test_not_found_route(self, client):
        response = client.get("/api/no-such-route")

        body = response.get_json()
        assert response.status_code == 404
        assert body["type"] == "not_found"
        assert body["status"] == 404
        assert "timestamp" in body

    def test_service_error(self, client, backend):
        backend.fetch_incidents.side_effect = BackendTimeoutError("Backend request timed out after 10s")

        response = client.get("/api/fetch-incidents")

        assert response.status_code == 504
        assert response.get_json() == {
            "error": "Backend request timed out after 10s",
            "type": "timeout",
            "status": 504,
            "timestamp": response.get_json()["timestamp"],
        }

    def test_unexpected_error_is_opaque(self, client, backend):
        backend.fetch_incidents.side_effect = RuntimeError("database password is hunter2")

        response = client.get("/api/fetch-incidents")

        body = response.get_json()
        assert response.status_code == 500
        assert body["type"] == "unknown_error"
        assert "hunter2" not in body["error"]
