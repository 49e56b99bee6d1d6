"""Domain enums, result types, ports and services for orders.

This module contains the enums parsed at the store/gateway boundary, the
result values returned by the workflows, protocol definitions (ports) for
the external collaborators (key-value store, payment status gateway and
task invoker) and the domain services that orchestrate them:

- ``OrderRecoveryService`` reconciles a ``CREATED`` order with the payment
  gateway and hands paid orders off to fulfillment.
- ``ForceRefundService`` records an administrative refund on an order.
- ``OrderListingService`` serves the partner and in-progress listings.

Domain failures are returned as ``Failure`` values carrying a
``FailureReason`` tag. Only unexpected errors (store connectivity, task
dispatch) are raised.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Sequence

logger = logging.getLogger("gateway.orders")


# ---- Enums ----
class OrderStatus(str, Enum):
    """Order statuses observed in the ``Order`` table."""

    CREATED = "CREATED"
    PAID = "PAID"
    ESIM_ORDERED = "ESIM_ORDERED"
    ESIM_FULFILLED = "ESIM_FULFILLED"
    PAYMENT_EXPIRED = "PAYMENT_EXPIRED"
    TOP_UP_COMPLETED = "TOP_UP_COMPLETED"
    ESIM_PUBLISHED = "ESIM_PUBLISHED"

    @classmethod
    def parse(cls, value: Any) -> Optional["OrderStatus"]:
        """Return the matching status, or None for missing/unknown values.

        Matching is exact: a stored ``"created"`` is not ``CREATED``.
        """
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


DEFAULT_IN_PROGRESS_STATUSES = (
    OrderStatus.CREATED,
    OrderStatus.PAID,
    OrderStatus.ESIM_ORDERED,
    OrderStatus.ESIM_FULFILLED,
)


class Provider(str, Enum):
    """Fulfillment provider of a product mapping."""

    ESIM_ACCESS = "ESIM_ACCESS"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> "Provider":
        normalized = str(value or "").strip().upper()
        return cls.ESIM_ACCESS if normalized == cls.ESIM_ACCESS.value else cls.OTHER


class OrderType(str, Enum):
    TOPUP = "topup"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "OrderType":
        normalized = str(value or "").strip().lower()
        return cls.TOPUP if normalized == cls.TOPUP.value else cls.OTHER


class FulfillmentTask(str, Enum):
    """Background tasks that continue fulfillment once an order is paid."""

    ESIM_ACCESS_TOPUP = "esimAccessTopup"
    MAYA_ESIM_TOPUP = "mayaEsimTopup"
    ESIM_ACCESS_CREATE_ORDER_PROFILE = "esimAccessCreateOrderProfile"
    MAYA_ESIM_ISSUANCE = "mayaEsimIssuance"

    @classmethod
    def select(cls, order_type: OrderType, provider: Provider) -> "FulfillmentTask":
        """Pick the task for an (order type, provider) pair."""
        return _TASK_TABLE[(order_type, provider)]


_TASK_TABLE = {
    (OrderType.TOPUP, Provider.ESIM_ACCESS): FulfillmentTask.ESIM_ACCESS_TOPUP,
    (OrderType.TOPUP, Provider.OTHER): FulfillmentTask.MAYA_ESIM_TOPUP,
    (OrderType.OTHER, Provider.ESIM_ACCESS): FulfillmentTask.ESIM_ACCESS_CREATE_ORDER_PROFILE,
    (OrderType.OTHER, Provider.OTHER): FulfillmentTask.MAYA_ESIM_ISSUANCE,
}


class RecoveryAction(str, Enum):
    NO_ACTION = "NO_ACTION"
    STATUS_UPDATED_AND_LAMBDA_INVOKED = "STATUS_UPDATED_AND_LAMBDA_INVOKED"


class FailureReason(str, Enum):
    """Tags for domain-rule failures reported back to the caller."""

    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    STATUS_NOT_CREATED = "STATUS_NOT_CREATED"
    MIDTRANS_FAILED = "MIDTRANS_FAILED"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    ORDER_PRICE_INVALID = "ORDER_PRICE_INVALID"
    AMOUNT_EXCEEDS_PRICE = "AMOUNT_EXCEEDS_PRICE"
    PRODUCT_PRICE_INVALID = "PRODUCT_PRICE_INVALID"
    PROMO_NOT_FOUND = "PROMO_NOT_FOUND"
    PROMO_INVALID = "PROMO_INVALID"


# ---- Results ----
@dataclass(frozen=True)
class Failure:
    """A domain failure.

    Attributes:
        reason: Tag identifying the failed rule.
        detail: Optional underlying error text (e.g. the gateway error).
    """

    reason: FailureReason
    detail: Optional[str] = None


@dataclass(frozen=True)
class RecoveryOutcome:
    """Successful outcome of a recovery attempt.

    Attributes:
        action: What the workflow did.
        order: The order attributes (post-update when the status changed).
        gateway_response: Raw JSON body returned by the payment gateway.
        task: The fulfillment task dispatched, if any.
    """

    action: RecoveryAction
    order: dict
    gateway_response: dict
    task: Optional[FulfillmentTask] = None


@dataclass(frozen=True)
class RefundOutcome:
    order: dict


@dataclass(frozen=True)
class ListingResult:
    table_name: str
    items: list = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.items)


# ---- Errors ----
class PaymentGatewayError(Exception):
    """The payment gateway could not be reached or answered with non-2xx."""


# ---- Ports (DIP) ----
class StorePort(Protocol):
    """Port over the key-value store holding orders and reference data.

    Items are plain dicts keyed by attribute name. Table names are exposed
    so listings can report where the items came from.
    """

    orders_table: str
    product_mapping_table: str
    region_table: str

    def get_order(self, order_id: str) -> Optional[dict]:
        raise NotImplementedError()

    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        expected_status: Optional[OrderStatus] = None,
    ) -> Optional[dict]:
        """Set the order status and return the post-update attributes.

        Returns:
            The updated item, or None when the order does not exist or its
            current status differs from ``expected_status``.
        """
        raise NotImplementedError()

    def set_force_refund(self, order_id: str, amount: float) -> Optional[dict]:
        """Set ``refund`` and ``forceRefund`` on an existing order.

        Returns:
            The updated item, or None when the order does not exist.
        """
        raise NotImplementedError()

    def scan_partner_orders(self, start: str, end: str) -> list[dict]:
        raise NotImplementedError()

    def query_orders_by_status(
        self, status: str, start: str, end: str, cursor: Optional[dict] = None
    ) -> tuple[list[dict], Optional[dict]]:
        """Read one page of orders with ``status`` created within the range.

        Returns:
            ``(items, next_cursor)``; ``next_cursor`` is None on the last page.
        """
        raise NotImplementedError()

    def find_product_by_code(self, code: str) -> Optional[dict]:
        raise NotImplementedError()

    def get_promo_code(self, code: str) -> Optional[dict]:
        raise NotImplementedError()

    def scan_product_mappings(self) -> list[dict]:
        raise NotImplementedError()

    def scan_regions(self) -> list[dict]:
        raise NotImplementedError()


class PaymentStatusPort(Protocol):
    def get_status(self, order_id: str) -> dict:
        """Return the gateway's JSON status body for an order.

        Raises:
            PaymentGatewayError: On transport errors or non-2xx responses.
        """
        raise NotImplementedError()


class TaskInvokerPort(Protocol):
    def invoke(self, task_name: str, payload: dict) -> None:
        """Dispatch a background task without waiting for its completion."""
        raise NotImplementedError()


# ---- Helpers ----
def to_number(value: Any) -> float:
    """Coerce a stored attribute to float; unparseable values become NaN."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return math.nan


# ---- Domain services ----
class OrderRecoveryService:
    """Reconcile a stuck ``CREATED`` order with the payment gateway.

    Only a confirmed settlement moves the order to ``PAID`` and dispatches
    the fulfillment task. Nothing is retried here.
    """

    SETTLEMENT = "settlement"

    def __init__(self, store: StorePort, payments: PaymentStatusPort, tasks: TaskInvokerPort):
        self.store = store
        self.payments = payments
        self.tasks = tasks

    def recover(self, order_id: str) -> RecoveryOutcome | Failure:
        """Run the recovery workflow for one order.

        Args:
            order_id: Identifier of the order to reconcile.

        Returns:
            A ``RecoveryOutcome`` (``NO_ACTION`` or
            ``STATUS_UPDATED_AND_LAMBDA_INVOKED``) or a ``Failure`` tagged
            ``ORDER_NOT_FOUND``, ``STATUS_NOT_CREATED``, ``MIDTRANS_FAILED``
            or ``PRODUCT_NOT_FOUND``. A ``PRODUCT_NOT_FOUND`` failure leaves
            the order ``PAID``.

        Raises:
            Exception: Store errors and task dispatch errors propagate. The
                order stays ``PAID`` when dispatch fails.
        """
        order = self.store.get_order(order_id)
        if order is None:
            return Failure(FailureReason.ORDER_NOT_FOUND)

        if OrderStatus.parse(order.get("status")) is not OrderStatus.CREATED:
            return Failure(FailureReason.STATUS_NOT_CREATED)

        try:
            gateway_response = self.payments.get_status(order_id)
        except PaymentGatewayError as e:
            logger.warning("payment gateway call failed", extra={"order_id": order_id, "error": str(e)})
            return Failure(FailureReason.MIDTRANS_FAILED, detail=str(e))

        transaction_status = str(gateway_response.get("transaction_status") or "").strip().lower()
        if transaction_status != self.SETTLEMENT:
            logger.info(
                "recovery no action",
                extra={"order_id": order_id, "transaction_status": transaction_status},
            )
            return RecoveryOutcome(RecoveryAction.NO_ACTION, order, gateway_response)

        updated = self.store.update_order_status(
            order_id, OrderStatus.PAID, expected_status=OrderStatus.CREATED
        )
        if updated is None:
            # moved on (or vanished) between the read and the conditional write
            return Failure(FailureReason.STATUS_NOT_CREATED, detail="order status changed during recovery")
        logger.info("recovery status updated", extra={"order_id": order_id, "status": OrderStatus.PAID.value})

        product_code = str(updated.get("productCode") or "").strip()
        product = self.store.find_product_by_code(product_code) if product_code else None
        provider = str((product or {}).get("provider") or "").strip()
        if not provider:
            logger.warning("recovery product not found", extra={"order_id": order_id, "product_code": product_code})
            return Failure(FailureReason.PRODUCT_NOT_FOUND)

        task = FulfillmentTask.select(OrderType.parse(updated.get("orderType")), Provider.parse(provider))
        try:
            self.tasks.invoke(task.value, {"orderId": order_id})
        except Exception:
            logger.exception("fulfillment task dispatch failed", extra={"order_id": order_id, "task": task.value})
            raise

        return RecoveryOutcome(
            RecoveryAction.STATUS_UPDATED_AND_LAMBDA_INVOKED, updated, gateway_response, task
        )


class ForceRefundService:
    """Record an administrative refund regardless of the refund workflow."""

    def __init__(self, store: StorePort):
        self.store = store

    def force_refund(self, order_id: str, amount: float) -> RefundOutcome | Failure:
        """Set ``refund=amount`` and ``forceRefund=True`` when amount <= price.

        Returns:
            ``RefundOutcome`` with the updated order, or a ``Failure`` tagged
            ``ORDER_NOT_FOUND``, ``ORDER_PRICE_INVALID`` or
            ``AMOUNT_EXCEEDS_PRICE``.
        """
        order = self.store.get_order(order_id)
        if order is None:
            return Failure(FailureReason.ORDER_NOT_FOUND)

        price = to_number(order.get("price"))
        if not math.isfinite(price):
            return Failure(FailureReason.ORDER_PRICE_INVALID)

        if amount > price:
            return Failure(FailureReason.AMOUNT_EXCEEDS_PRICE)

        updated = self.store.set_force_refund(order_id, amount)
        if updated is None:
            return Failure(FailureReason.ORDER_NOT_FOUND)
        logger.info("force refund applied", extra={"order_id": order_id, "amount": amount})
        return RefundOutcome(updated)


class OrderListingService:
    """Read-only order listings over a createdAt range."""

    def __init__(self, store: StorePort, in_progress_statuses: Sequence[str] = DEFAULT_IN_PROGRESS_STATUSES):
        self.store = store
        self.in_progress_statuses = [
            s.value if isinstance(s, OrderStatus) else str(s) for s in in_progress_statuses
        ]

    def partner_orders(self, start: str, end: str) -> ListingResult:
        """Orders created within ``[start, end]`` that carry a partner marker."""
        return ListingResult(self.store.orders_table, self.store.scan_partner_orders(start, end))

    def in_progress_orders(self, start: str, end: str) -> ListingResult:
        """Orders in any in-progress status created within ``[start, end]``.

        Statuses are read in their configured order and each one is paged
        through sequentially until the store reports no further cursor.
        """
        items: list[dict] = []
        for status in self.in_progress_statuses:
            cursor = None
            while True:
                page, cursor = self.store.query_orders_by_status(status, start, end, cursor)
                items.extend(page)
                if not cursor:
                    break
        return ListingResult(self.store.orders_table, items)
