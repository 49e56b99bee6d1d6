"""Request-level middleware for the gateway.

``RequestIdMiddleware`` tags every request with a correlation id. The id is
taken from the caller's ``X-Request-ID`` header or minted as a UUID4. It is
kept in ``REQUEST_ID_CTX`` so the JSON log filter and the Midtrans client
pick it up, and it is echoed back on the response. Each request produces a
single ``request handled`` log record.

``ApiSizeLimitMiddleware`` refuses oversized ``/v2/`` bodies before DRF
parses them, answering with the usual ``{success, message}`` envelope.
"""

import contextvars
import logging
import os
import uuid

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(1024 * 1024)))
API_PREFIX = "/v2/"

logger = logging.getLogger("gateway.requests")


class RequestIdMiddleware(MiddlewareMixin):
    """Assign, propagate and echo the ``X-Request-ID`` correlation id."""

    META_KEY = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        request_id = request.META.get(self.META_KEY) or str(uuid.uuid4())
        request.request_id = request_id
        REQUEST_ID_CTX.set(request_id)

    def process_response(self, request, response):
        response[self.RESPONSE_HEADER] = getattr(request, "request_id", REQUEST_ID_CTX.get())
        logger.info(
            "request handled",
            extra={
                "method": getattr(request, "method", None),
                "path": getattr(request, "path", None),
                "status_code": response.status_code,
            },
        )
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    """413 for ``/v2/`` requests whose Content-Length exceeds ``API_MAX_BYTES``."""

    def process_request(self, request):
        if not request.path.startswith(API_PREFIX):
            return None
        content_length = request.META.get("CONTENT_LENGTH") or ""
        if content_length.isdigit() and int(content_length) > MAX_API_BYTES:
            logger.warning("payload too large", extra={"path": request.path, "content_length": int(content_length)})
            return JsonResponse({"success": False, "message": "PAYLOAD_TOO_LARGE"}, status=413)
        return None
