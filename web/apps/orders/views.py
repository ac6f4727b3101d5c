"""HTTP views for carts and orders.

This module contains the DRF API views of the service. Views are kept
intentionally small: they parse the request body into a Pydantic DTO, call
the cart or order service obtained from ``providers``, and render the
returned DTOs as camelCase JSON.

Views never catch domain errors. Every ``OrderingError`` raised by a service
reaches ``ordering_exception_handler`` (registered as the DRF
``EXCEPTION_HANDLER``), which turns the error kind into a status code:

- ``NotFoundError`` → 404
- ``InvalidInput`` / ``IllegalOrderState`` → 400
- ``UserServiceUnavailable`` → 503
- ``UnknownOrderStatus`` → 500
"""

import logging

from pydantic import BaseModel, ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView, exception_handler

from . import providers
from .domain import (
    IllegalOrderState,
    InvalidInput,
    NotFoundError,
    OrderingError,
    UnknownOrderStatus,
    UserServiceUnavailable,
)
from .schemas import CartDTO, OrderDTO, collection, dump

logger = logging.getLogger("orders.api")

ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (IllegalOrderState, status.HTTP_400_BAD_REQUEST),
    (UserServiceUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (UnknownOrderStatus, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def ordering_exception_handler(exc, context):
    """DRF exception handler translating domain errors into responses.

    Non-domain exceptions are delegated to DRF's default handler.

    Returns:
        Response | None: ``{"detail": code, "message": text}`` with the
        mapped status, or whatever DRF returns for other exceptions.
    """
    if not isinstance(exc, OrderingError):
        return exception_handler(exc, context)

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for kind, code in ERROR_STATUS:
        if isinstance(exc, kind):
            status_code = code
            break

    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(level, "request failed", extra={"error": exc.code, "status": status_code})
    return Response({"detail": exc.code, "message": exc.message}, status=status_code)


class InvalidPayload(Exception):
    pass


def _parse(model: type[BaseModel], data) -> BaseModel:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidPayload(str(e)) from e


def _bad_payload(e: InvalidPayload) -> Response:
    return Response({"detail": "INVALID_PAYLOAD", "message": str(e)}, status=status.HTTP_400_BAD_REQUEST)


class MethodScopedThrottleMixin:
    """Pick ``<prefix>_read`` for GET and ``<prefix>_write`` for other methods."""

    throttle_classes = [ScopedRateThrottle]
    throttle_prefix = ""

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before the handler runs
        suffix = "read" if self.request.method == "GET" else "write"
        self.throttle_scope = f"{self.throttle_prefix}_{suffix}"
        return [throttle() for throttle in self.throttle_classes]


# ---------------- Carts ---------------- #

class CartCollectionView(MethodScopedThrottleMixin, APIView):
    """List active carts (GET) or create a cart for an existing user (POST)."""

    throttle_prefix = "carts"

    def get(self, request):
        return Response(collection(providers.get_cart_service().find_all()))

    def post(self, request):
        """Create a cart.

        Returns:
            Response: 201 with the enriched cart; 400 on a malformed body or
            missing ``userId``; 404 when the user does not exist; 503 when the
            user service cannot be reached.
        """
        try:
            dto = _parse(CartDTO, request.data)
        except InvalidPayload as e:
            return _bad_payload(e)
        out = providers.get_cart_service().save(dto)
        return Response(dump(out), status=status.HTTP_201_CREATED)


class CartDetailView(MethodScopedThrottleMixin, APIView):
    throttle_prefix = "carts"

    def get(self, request, cart_id: int):
        return Response(dump(providers.get_cart_service().find_by_id(cart_id)))

    def delete(self, request, cart_id: int):
        providers.get_cart_service().delete_by_id(cart_id)
        return Response(True)


# ---------------- Orders ---------------- #

class OrderCollectionView(MethodScopedThrottleMixin, APIView):
    """List active orders (GET) or create an order in a cart (POST)."""

    throttle_prefix = "orders"

    def get(self, request):
        return Response(collection(providers.get_order_service().find_all()))

    def post(self, request):
        try:
            dto = _parse(OrderDTO, request.data)
        except InvalidPayload as e:
            return _bad_payload(e)
        out = providers.get_order_service().save(dto)
        return Response(dump(out), status=status.HTTP_201_CREATED)


class OrderDetailView(MethodScopedThrottleMixin, APIView):
    """Read, update (description and fee only) or soft delete one order."""

    throttle_prefix = "orders"

    def get(self, request, order_id: int):
        return Response(dump(providers.get_order_service().find_by_id(order_id)))

    def put(self, request, order_id: int):
        try:
            dto = _parse(OrderDTO, request.data)
        except InvalidPayload as e:
            return _bad_payload(e)
        return Response(dump(providers.get_order_service().update(order_id, dto)))

    def delete(self, request, order_id: int):
        providers.get_order_service().delete_by_id(order_id)
        return Response(True)


class OrderStatusView(MethodScopedThrottleMixin, APIView):
    """Advance an order to its next status. Takes no body."""

    throttle_prefix = "orders"

    def patch(self, request, order_id: int):
        return Response(dump(providers.get_order_service().update_status(order_id)))
