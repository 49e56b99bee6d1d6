import re


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "API is healthy"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", body["timestamp"])


def test_index_welcome(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"message": "Welcome to the eSIM order gateway"}


def test_request_id_is_echoed_or_generated(client):
    r = client.get("/health", HTTP_X_REQUEST_ID="req-123")
    assert r["X-Request-ID"] == "req-123"

    r = client.get("/health")
    assert re.fullmatch(r"[0-9a-f-]{36}", r["X-Request-ID"])


def test_oversized_api_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr("gateway.middleware.MAX_API_BYTES", 10)
    r = client.post("/v2/order/recovery", {"orderId": "A" * 64}, content_type="application/json")
    assert r.status_code == 413
    assert r.json() == {"success": False, "message": "PAYLOAD_TOO_LARGE"}


def test_unknown_route_is_404(client):
    assert client.get("/v2/nothing-here").status_code == 404


def test_size_limit_only_applies_to_api_prefix(client, monkeypatch):
    monkeypatch.setattr("gateway.middleware.MAX_API_BYTES", 10)
    r = client.post("/health", {"padding": "x" * 64}, content_type="application/json")
    assert r.status_code != 413
