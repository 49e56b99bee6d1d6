"""Unit tests for the Midtrans status adapter.

These tests verify that the HTTP client builds the status request the way
Midtrans expects and maps success, refusal, network error and open-circuit
conditions, by monkeypatching ``httpx.Client.get``.
"""
import base64

import httpx
import pytest

from apps.orders.domain import PaymentGatewayError
from apps.orders.http_adapters import HttpMidtransClient, _midtrans_cb


def make_resp(status_code, json_data=None, url="https://midtrans.test/v2/A/status"):
    """Build a real ``httpx.Response`` bound to a request so ``raise_for_status`` works."""
    return httpx.Response(status_code, json=json_data if json_data is not None else {},
                          request=httpx.Request("GET", url))


@pytest.fixture(autouse=True)
def closed_circuit():
    _midtrans_cb.on_success()
    yield
    _midtrans_cb.on_success()


def test_get_status_ok_sends_basic_auth_with_server_key(monkeypatch):
    """200 returns the decoded body; the server key is the Basic username."""
    seen = {}

    def fake_get(self, url, headers=None, **kw):
        seen["url"], seen["headers"] = url, headers
        return make_resp(200, {"order_id": "A", "transaction_status": "settlement"})

    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)
    client = HttpMidtransClient(base_url="https://midtrans.test/", server_key="SB-key")

    body = client.get_status("A")

    assert body["transaction_status"] == "settlement"
    assert seen["url"] == "https://midtrans.test/v2/A/status"
    expected = base64.b64encode(b"SB-key:").decode("ascii")
    assert seen["headers"]["Authorization"] == f"Basic {expected}"
    assert seen["headers"]["Accept"] == "application/json"


def test_order_id_is_path_escaped(monkeypatch):
    seen = {}

    def fake_get(self, url, headers=None, **kw):
        seen["url"] = url
        return make_resp(200, {"transaction_status": "pending"})

    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)
    HttpMidtransClient(base_url="https://midtrans.test", server_key="k").get_status("a/b c")
    assert seen["url"] == "https://midtrans.test/v2/a%2Fb%20c/status"


def test_non_2xx_raises_gateway_error_with_status_text(monkeypatch):
    monkeypatch.setattr(httpx.Client, "get", lambda self, url, headers=None, **kw: make_resp(404), raising=True)
    with pytest.raises(PaymentGatewayError, match="404"):
        HttpMidtransClient(base_url="https://midtrans.test", server_key="k").get_status("A")
    assert _midtrans_cb.state == "CLOSED"


def test_network_error_is_wrapped(monkeypatch):
    def fake_get(self, url, headers=None, **kw):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)
    with pytest.raises(PaymentGatewayError, match="boom"):
        HttpMidtransClient(base_url="https://midtrans.test", server_key="k").get_status("A")


def test_non_object_body_is_rejected(monkeypatch):
    monkeypatch.setattr(httpx.Client, "get", lambda self, url, headers=None, **kw: make_resp(200, [1, 2]), raising=True)
    with pytest.raises(PaymentGatewayError, match="unexpected midtrans payload"):
        HttpMidtransClient(base_url="https://midtrans.test", server_key="k").get_status("A")


def test_open_circuit_refuses_without_calling(monkeypatch):
    calls = {"n": 0}

    def fake_get(self, url, headers=None, **kw):
        calls["n"] += 1
        return make_resp(503)

    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)
    client = HttpMidtransClient(base_url="https://midtrans.test", server_key="k")
    for _ in range(_midtrans_cb.fail_threshold):
        with pytest.raises(PaymentGatewayError):
            client.get_status("A")
    assert _midtrans_cb.state == "OPEN"

    with pytest.raises(PaymentGatewayError, match="CIRCUIT_OPEN"):
        client.get_status("A")
    assert calls["n"] == _midtrans_cb.fail_threshold
