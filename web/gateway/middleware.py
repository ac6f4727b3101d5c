"""Middleware that assigns, propagates and logs a request identifier.

Every incoming HTTP request receives a request identifier. The identifier
is read from the incoming ``X-Request-Id`` header when provided by the
client, or generated server-side (UUIDv4) otherwise. It is stored on the
``request`` object and in ``REQUEST_ID_CTX`` so code running downstream
(log filters, the user service HTTP client) can use it without passing the
value explicitly.

Behavior contract:
- The response always carries the id in the ``X-Request-ID`` header.
- One structured "request handled" log line is written per request with
  method, path, status and duration.
"""

import logging
import time
import uuid
import contextvars

from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("gateway")


class RequestIdMiddleware(MiddlewareMixin):
    """Django middleware that sets, returns and logs a per-request identifier.

    Attributes:
        HEADER (str): Incoming header name in Django's ``request.META`` casing.
        RESPONSE_HEADER (str): Header name set on responses.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._started_at = time.monotonic()
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Echo the request id on the response and log the request.

        Args:
            request: Django HttpRequest.
            response: Django HttpResponse to modify.

        Returns:
            The same response with the ``X-Request-ID`` header set.
        """
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid

        started = getattr(request, "_started_at", None)
        duration_ms = round((time.monotonic() - started) * 1000, 2) if started is not None else None
        logger.info(
            "request handled",
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response
