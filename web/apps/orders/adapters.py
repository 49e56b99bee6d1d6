"""In-process stub adapters for the orders domain ports.

These stubs implement ``StorePort``, ``PaymentStatusPort`` and
``TaskInvokerPort`` without any network calls. They are intended for unit
tests and local development where deterministic behavior is useful and
DynamoDB, Midtrans and Lambda are not available.
"""

from typing import Iterable, Optional

from .domain import PaymentGatewayError, StorePort, PaymentStatusPort, TaskInvokerPort


def _between(value, start: str, end: str) -> bool:
    return isinstance(value, str) and start <= value <= end


class InMemoryStore(StorePort):
    """Dict-backed stand-in for the DynamoDB tables.

    Items are copied on the way in and on the way out so callers cannot
    mutate stored state by accident. ``query_orders_by_status`` pages its
    results ``page_size`` items at a time and returns the last item's key
    as the cursor, mimicking ``LastEvaluatedKey``.
    """

    def __init__(
        self,
        orders: Iterable[dict] = (),
        products: Iterable[dict] = (),
        promos: Iterable[dict] = (),
        regions: Iterable[dict] = (),
        page_size: int = 100,
    ):
        self.orders_table = "Order"
        self.product_mapping_table = "ProductMapping"
        self.region_table = "Region"
        self.promo_code_table = "PromoCode"
        self.page_size = page_size
        self.orders = {o["orderId"]: dict(o) for o in orders}
        self.products = [dict(p) for p in products]
        self.promos = {p["code"]: dict(p) for p in promos}
        self.regions = [dict(r) for r in regions]
        self.writes: list[tuple[str, dict]] = []

    def get_order(self, order_id: str) -> Optional[dict]:
        order = self.orders.get(order_id)
        return dict(order) if order is not None else None

    def update_order_status(self, order_id, status, expected_status=None):
        order = self.orders.get(order_id)
        if order is None:
            return None
        if expected_status is not None and order.get("status") != expected_status.value:
            return None
        self._write(order_id, {"status": status.value})
        return dict(order)

    def set_force_refund(self, order_id, amount):
        if order_id not in self.orders:
            return None
        self._write(order_id, {"refund": amount, "forceRefund": True})
        return dict(self.orders[order_id])

    def scan_partner_orders(self, start, end):
        return [
            dict(o)
            for o in self.orders.values()
            if _between(o.get("createdAt"), start, end) and "partner" in o
        ]

    def query_orders_by_status(self, status, start, end, cursor=None):
        matches = sorted(
            (o for o in self.orders.values()
             if o.get("status") == status and _between(o.get("createdAt"), start, end)),
            key=lambda o: (o["createdAt"], o["orderId"]),
        )
        offset = 0
        if cursor:
            ids = [o["orderId"] for o in matches]
            offset = ids.index(cursor["orderId"]) + 1
        page = matches[offset:offset + self.page_size]
        next_cursor = None
        if page and offset + len(page) < len(matches):
            last = page[-1]
            next_cursor = {"orderId": last["orderId"], "status": status, "createdAt": last["createdAt"]}
        return [dict(o) for o in page], next_cursor

    def find_product_by_code(self, code):
        for p in self.products:
            if p.get("code") == code:
                return dict(p)
        return None

    def get_promo_code(self, code):
        promo = self.promos.get(code)
        return dict(promo) if promo is not None else None

    def scan_product_mappings(self):
        return [dict(p) for p in self.products]

    def scan_regions(self):
        return [dict(r) for r in self.regions]

    def _write(self, order_id: str, changes: dict) -> None:
        self.orders[order_id].update(changes)
        self.writes.append((order_id, dict(changes)))


class PaymentStatusStub(PaymentStatusPort):
    """Stub payment gateway answering every order with a fixed status.

    When ``error`` is set every call raises ``PaymentGatewayError`` with
    that message instead.
    """

    def __init__(self, transaction_status: str = "pending", error: Optional[str] = None):
        self.transaction_status = transaction_status
        self.error = error
        self.calls: list[str] = []

    def get_status(self, order_id: str) -> dict:
        self.calls.append(order_id)
        if self.error:
            raise PaymentGatewayError(self.error)
        return {"order_id": order_id, "status_code": "200", "transaction_status": self.transaction_status}


class RecordingTaskInvoker(TaskInvokerPort):
    """Task invoker that records dispatches instead of sending them."""

    def __init__(self):
        self.invocations: list[tuple[str, dict]] = []

    def invoke(self, task_name: str, payload: dict) -> None:
        self.invocations.append((task_name, dict(payload)))
