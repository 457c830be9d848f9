"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the
shared error envelope.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test stores
  - No authentication required
  - Unknown paths and untrusted hosts
"""

from __future__ import annotations

from api.main import app


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, token, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == app.version
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_unknown_path_uses_error_envelope(api_client):
    client, _, _ = api_client
    resp = client.get("/api/v1/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_docs_require_auth(api_client):
    client, token, _ = api_client
    assert client.get("/docs").status_code == 401
    resp = client.get("/docs", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert "swagger" in resp.text.lower()


def test_untrusted_host_rejected(api_client):
    """TrustedHostMiddleware answers 400 for hosts outside ALLOWED_HOSTS."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={"Host": "evil.example.org"})
    assert resp.status_code == 400


def test_cors_preflight_allows_configured_origin(api_client):
    client, _, _ = api_client
    resp = client.options(
        "/api/v1/designs",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
