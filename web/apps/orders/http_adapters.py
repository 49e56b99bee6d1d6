"""HTTP adapter for the Midtrans payment status API.

This module implements ``PaymentStatusPort`` using ``httpx``. It adds:

- Request correlation: propagates ``X-Request-ID`` from a ContextVar set by
    the gateway middleware.
- A circuit breaker in front of Midtrans to avoid hammering an unhealthy
    gateway, with HALF_OPEN probing after a timeout.
- An opt-in retry policy with exponential backoff for transport errors and
    5xx. ``MIDTRANS_RETRY_MAX`` counts attempts and defaults to 1, so the
    status lookup is not retried unless an operator asks for it.

Every failure leaves the adapter as ``PaymentGatewayError`` carrying the
underlying error text.
"""

import base64
import logging
import threading
import time
from typing import Optional
from urllib.parse import quote

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from .domain import PaymentGatewayError, PaymentStatusPort

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")
logger = logging.getLogger("gateway.http")


# ---------------- Circuit Breaker ---------------- #

class CircuitOpenError(RuntimeError):
    """Raised by ``CircuitBreaker.before_call`` when calls are refused."""


class CircuitBreaker:
    """Minimal circuit breaker with CLOSED/OPEN/HALF_OPEN states.

    Transitions:
    - CLOSED → OPEN when failures reach ``fail_threshold``.
    - OPEN → HALF_OPEN after ``reset_timeout`` seconds.
    - HALF_OPEN → CLOSED on a successful probe; stays HALF_OPEN while a
      single probe is in flight; transitions back to OPEN on failure.

    This implementation is thread-safe via an internal lock.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"  # CLOSED | OPEN | HALF_OPEN
        self._opened_at = 0.0
        self._half_open_probe_in_flight = False

    @property
    def state(self) -> str:
        """Current breaker state with time-based transition handling."""
        with self._lock:
            if self._state == "OPEN" and (time.monotonic() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._half_open_probe_in_flight = False
            return self._state

    def before_call(self) -> str:
        """Check and update state before a protected call.

        Returns:
            str: The state at call time.

        Raises:
            CircuitOpenError: If the circuit is OPEN or a HALF_OPEN probe is busy.
        """
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise CircuitOpenError(f"CIRCUIT_OPEN: {self.name}")
            if st == "HALF_OPEN":
                if self._half_open_probe_in_flight:
                    raise CircuitOpenError(f"CIRCUIT_HALF_OPEN_BUSY: {self.name}")
                self._half_open_probe_in_flight = True
            return st

    def on_success(self):
        """Record a successful call and close/reset the breaker."""
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._half_open_probe_in_flight = False

    def on_failure(self):
        """Record a failed call and open the breaker if threshold exceeded."""
        with self._lock:
            self._failures += 1
            if self._state == "HALF_OPEN" or (self._failures >= self.fail_threshold and self._state != "OPEN"):
                self._state = "OPEN"
                self._opened_at = time.monotonic()
                self._half_open_probe_in_flight = False

    def on_finish(self):
        """Release any HALF_OPEN probe flag after a call finishes."""
        with self._lock:
            if self._state == "HALF_OPEN":
                self._half_open_probe_in_flight = False


_midtrans_cb = CircuitBreaker(
    "midtrans",
    getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
    getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
)


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras."""
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy():
    """Return retry configuration as (max_attempts, backoff_base_seconds)."""
    return (
        max(1, int(getattr(settings, "MIDTRANS_RETRY_MAX", 1))),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
    )


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    """Retry only on transport exceptions or HTTP 5xx."""
    if exc is not None:
        return True
    if resp is not None and 500 <= resp.status_code < 600:
        return True
    return False


def _status_error(resp: httpx.Response) -> PaymentGatewayError:
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        return PaymentGatewayError(str(e))
    return PaymentGatewayError(f"unexpected status {resp.status_code}")


# ---------------- Midtrans Adapter ---------------- #

class HttpMidtransClient(PaymentStatusPort):
    """Midtrans transaction status client with circuit breaker.

    Midtrans authenticates with HTTP Basic where the username is the
    server key and the password is empty.
    """

    def __init__(
        self,
        base_url: str | None = None,
        server_key: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.MIDTRANS_BASE_URL).rstrip("/")
        self.server_key = server_key if server_key is not None else settings.MIDTRANS_SERVER_KEY
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def _authorization(self) -> str:
        token = base64.b64encode(f"{self.server_key}:".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    def get_status(self, order_id: str) -> dict:
        """Fetch the transaction status for an order.

        Maps responses:
        - 2xx → the decoded JSON body
        - 4xx → ``PaymentGatewayError``, not counted as a circuit failure
        - 5xx / transport error → retried while attempts remain, then
          ``PaymentGatewayError`` and a circuit failure

        Args:
            order_id: Order identifier used as the Midtrans ``order_id``.

        Returns:
            dict: Midtrans status body (``transaction_status`` et al.).

        Raises:
            PaymentGatewayError: On any failure, including an open circuit.
        """
        url = f"{self.base_url}/v2/{quote(order_id, safe='')}/status"
        max_attempts, backoff = _retry_policy()
        tries = 0

        try:
            _midtrans_cb.before_call()
        except CircuitOpenError as e:
            raise PaymentGatewayError(str(e)) from e

        headers = _request_headers({
            "Accept": "application/json",
            "Authorization": self._authorization(),
        })

        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = client.get(url, headers=headers)
                        if 200 <= resp.status_code < 300:
                            _midtrans_cb.on_success()
                            return self._decode(resp)
                        if not _should_retry(resp, None):
                            _midtrans_cb.on_success()  # gateway is up, the request was refused
                            raise _status_error(resp)
                    except httpx.RequestError as e:
                        exc = e

                    tries += 1
                    if tries >= max_attempts:
                        _midtrans_cb.on_failure()
                        if exc is not None:
                            raise PaymentGatewayError(str(exc) or exc.__class__.__name__) from exc
                        raise _status_error(resp)

                    logger.info("retrying midtrans status", extra={"order_id": order_id, "attempt": tries + 1})
                    sleep_s = backoff * (2 ** (tries - 1))
                    cap = getattr(settings, "HTTP_RETRY_MAX_SLEEP", 0.5)
                    time.sleep(min(sleep_s, cap))
        finally:
            _midtrans_cb.on_finish()

    @staticmethod
    def _decode(resp: httpx.Response) -> dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise PaymentGatewayError(f"invalid JSON from midtrans: {e}") from e
        if not isinstance(data, dict):
            raise PaymentGatewayError("unexpected midtrans payload")
        return data
