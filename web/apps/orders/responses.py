"""Response envelope helpers shared by the v2 views.

Every body follows ``{"success": bool, "message"?: str, ...payload}``.
Domain failures map to 400/404/502 by reason; unexpected exceptions map
to 500 with a generic message and the underlying error text.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .domain import Failure, FailureReason

logger = logging.getLogger("gateway.api")

FAILURE_HTTP_STATUS = {
    FailureReason.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.PROMO_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.STATUS_NOT_CREATED: status.HTTP_400_BAD_REQUEST,
    FailureReason.ORDER_PRICE_INVALID: status.HTTP_400_BAD_REQUEST,
    FailureReason.AMOUNT_EXCEEDS_PRICE: status.HTTP_400_BAD_REQUEST,
    FailureReason.PRODUCT_PRICE_INVALID: status.HTTP_400_BAD_REQUEST,
    FailureReason.PROMO_INVALID: status.HTTP_400_BAD_REQUEST,
    FailureReason.MIDTRANS_FAILED: status.HTTP_502_BAD_GATEWAY,
}

FAILURE_MESSAGES = {
    FailureReason.ORDER_NOT_FOUND: "orderId not found in Order table",
    FailureReason.PRODUCT_NOT_FOUND: "productCode not found in ProductMapping table",
    FailureReason.PROMO_NOT_FOUND: "promoCode not found in PromoCode table",
    FailureReason.STATUS_NOT_CREATED: "order status must be CREATED to recover",
    FailureReason.ORDER_PRICE_INVALID: "order price is invalid",
    FailureReason.AMOUNT_EXCEEDS_PRICE: "amount must be less than or equal to order price",
    FailureReason.PRODUCT_PRICE_INVALID: "product price is invalid",
    FailureReason.PROMO_INVALID: "promo code data is invalid",
    FailureReason.MIDTRANS_FAILED: "failed to fetch transaction status from Midtrans",
}


def failure_response(failure: Failure) -> Response:
    body = {
        "success": False,
        "reason": failure.reason.value,
        "message": FAILURE_MESSAGES[failure.reason],
    }
    if failure.detail:
        body["error"] = failure.detail
    return Response(body, status=FAILURE_HTTP_STATUS[failure.reason])


def bad_request(message: str, error: str | None = None) -> Response:
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return Response(body, status=status.HTTP_400_BAD_REQUEST)


def internal_error(message: str, exc: Exception) -> Response:
    """Log ``exc`` with its traceback and build the 500 envelope."""
    logger.exception(message)
    return Response(
        {"success": False, "message": message, "error": str(exc) or exc.__class__.__name__},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def listing_response(result) -> Response:
    return Response(
        {
            "success": True,
            "tableName": result.table_name,
            "count": result.count,
            "items": result.items,
        },
        status=status.HTTP_200_OK,
    )


def api_exception_handler(exc, context):
    """Wrap DRF's own errors (parse, media type, throttling) in the envelope."""
    response = exception_handler(exc, context)
    if response is None:
        return None
    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    response.data = {"success": False, "message": str(detail or exc)}
    return response
