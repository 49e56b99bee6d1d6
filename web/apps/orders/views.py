"""HTTP views for the orders app.

This module contains DRF API views for the order listings and the two
order workflows. Views are kept intentionally small: they validate
requests (via Pydantic), delegate to a domain service, and map the
result to the response envelope.

The views obtain configured services from ``providers``, which returns
AWS/HTTP adapter-backed ports (``DynamoStore``, ``HttpMidtransClient``,
``LambdaTaskInvoker``) or in-process stubs depending on runtime settings.

Domain failures come back as ``Failure`` values and are mapped by reason.
Any exception escaping a service is caught here, logged, and returned as
HTTP 500.
"""

from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import providers
from .domain import Failure
from .responses import bad_request, failure_response, internal_error, listing_response
from .schemas import DateRangeQuery, ForceRefundDTO, RecoveryDTO


class InvalidDateRange(ValueError):
    pass


def parse_date_range(params) -> DateRangeQuery:
    """Validate ``startDate``/``endDate`` query params.

    Raises:
        InvalidDateRange: With the client-facing message.
    """
    start = (params.get("startDate") or "").strip()
    end = (params.get("endDate") or "").strip()
    if not start or not end:
        raise InvalidDateRange("query params startDate and endDate are required")
    try:
        query = DateRangeQuery.model_validate({"startDate": start, "endDate": end})
    except ValidationError:
        raise InvalidDateRange("startDate and endDate must be valid date strings")
    if query.start > query.end:
        raise InvalidDateRange("startDate must be less than or equal to endDate")
    return query


class DateRangeListingView(APIView):
    """Base view for listings filtered by a createdAt date range."""

    throttle_scope = "orders_read"
    error_message = "failed to read orders from DynamoDB"

    def fetch(self, service, query: DateRangeQuery):
        raise NotImplementedError()

    def get(self, request):
        try:
            query = parse_date_range(request.query_params)
        except InvalidDateRange as e:
            return bad_request(str(e))

        try:
            result = self.fetch(providers.get_listing_service(), query)
        except Exception as e:
            return internal_error(self.error_message, e)
        return listing_response(result)


class PartnerOrdersView(DateRangeListingView):
    """Orders placed through partners within the date range."""

    def fetch(self, service, query):
        return service.partner_orders(query.start, query.end)


class InProgressOrdersView(DateRangeListingView):
    """Orders in an in-progress status within the date range."""

    def fetch(self, service, query):
        return service.in_progress_orders(query.start, query.end)


class ForceRefundView(APIView):
    """Record a forced refund on an order.

    Responses:
        - 200 with ``{success, message, item}`` holding the updated order.
        - 400 on an invalid body, an invalid stored price, or an amount
          above the order price.
        - 404 when the order does not exist.
        - 500 on unexpected store errors.
    """

    throttle_scope = "orders_write"

    def post(self, request):
        try:
            dto = ForceRefundDTO.model_validate(request.data)
        except ValidationError as e:
            return bad_request("orderId and a positive, finite amount are required", str(e))

        try:
            result = providers.get_refund_service().force_refund(dto.order_id, dto.amount)
        except Exception as e:
            return internal_error("failed to force refund order", e)

        if isinstance(result, Failure):
            return failure_response(result)
        return Response(
            {"success": True, "message": "force refund applied", "item": result.order},
            status=status.HTTP_200_OK,
        )


class OrderRecoveryView(APIView):
    """Reconcile a ``CREATED`` order with Midtrans and resume fulfillment.

    Responses:
        - 200 with ``{success, action, order, midtrans[, invokedTask]}``.
        - 400 on an invalid body or when the order is not ``CREATED``.
        - 404 when the order or its product mapping does not exist.
        - 502 when Midtrans is unreachable or answers non-2xx.
        - 500 on unexpected store or task dispatch errors.
    """

    throttle_scope = "orders_write"

    def post(self, request):
        try:
            dto = RecoveryDTO.model_validate(request.data)
        except ValidationError as e:
            return bad_request("orderId is required", str(e))

        try:
            result = providers.get_recovery_service().recover(dto.order_id)
        except Exception as e:
            return internal_error("failed to recover order", e)

        if isinstance(result, Failure):
            return failure_response(result)

        body = {
            "success": True,
            "action": result.action.value,
            "order": result.order,
            "midtrans": result.gateway_response,
        }
        if result.task is not None:
            body["invokedTask"] = result.task.value
        return Response(body, status=status.HTTP_200_OK)
