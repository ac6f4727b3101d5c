"""Repository layer for persisting carts and orders.

This module implements the repository ports from ``domain`` on top of the
Django ORM. It keeps a thin interface that only exchanges domain dataclasses
so the services are not coupled to ORM types.

Soft-delete visibility is decided here: active reads use the ``active``
manager of each model, and only the two raw cart lookups (``get`` and
``exists``) use ``objects``.
"""

from typing import List, Optional

from django.db.models import Prefetch

from .domain import Cart, Order, OrderRef, OrderStatus
from .models import CartModel, OrderModel


def _status(value: str):
    """Convert a stored status, keeping unknown values as raw strings."""
    try:
        return OrderStatus(value)
    except ValueError:
        return value


def _status_value(status) -> str:
    return status.value if isinstance(status, OrderStatus) else status


def _with_active_orders(qs):
    return qs.prefetch_related(
        Prefetch("orders", queryset=OrderModel.active.order_by("order_id"))
    )


def _cart_to_domain(obj: CartModel) -> Cart:
    return Cart(
        cart_id=obj.cart_id,
        user_id=obj.user_id,
        is_active=obj.is_active,
        orders=[OrderRef(order_id=o.order_id, status=_status(o.status)) for o in obj.orders.all()],
    )


def _order_to_domain(obj: OrderModel) -> Order:
    return Order(
        order_id=obj.order_id,
        cart_id=obj.cart_id,
        order_desc=obj.order_desc,
        order_fee=obj.order_fee,
        status=_status(obj.status),
        order_date=obj.order_date,
        is_active=obj.is_active,
    )


class CartRepository:
    """Cart persistence backed by ``CartModel``."""

    def list_active(self) -> List[Cart]:
        return [_cart_to_domain(obj) for obj in _with_active_orders(CartModel.active.all())]

    def get_active(self, cart_id: int) -> Optional[Cart]:
        obj = _with_active_orders(CartModel.active.filter(cart_id=cart_id)).first()
        return _cart_to_domain(obj) if obj else None

    def get(self, cart_id: int) -> Optional[Cart]:
        obj = _with_active_orders(CartModel.objects.filter(cart_id=cart_id)).first()
        return _cart_to_domain(obj) if obj else None

    def exists(self, cart_id: int) -> bool:
        return CartModel.objects.filter(cart_id=cart_id).exists()

    def save(self, cart: Cart) -> Cart:
        """Insert a new cart or persist the active flag of an existing one.

        ``user_id`` is never rewritten on update.

        Args:
            cart: Domain cart; ``cart_id`` None means insert.

        Returns:
            The stored cart as re-read from the database.
        """
        if cart.cart_id is None:
            obj = CartModel.objects.create(user_id=cart.user_id, is_active=cart.is_active)
        else:
            obj = CartModel.objects.get(cart_id=cart.cart_id)
            obj.is_active = cart.is_active
            obj.save(update_fields=["is_active", "updated_at"])
        return self.get(obj.cart_id)


class OrderRepository:
    """Order persistence backed by ``OrderModel``."""

    def list_active(self) -> List[Order]:
        return [_order_to_domain(obj) for obj in OrderModel.active.all()]

    def get_active(self, order_id: int) -> Optional[Order]:
        obj = OrderModel.active.filter(order_id=order_id).first()
        return _order_to_domain(obj) if obj else None

    def save(self, order: Order) -> Order:
        """Insert a new order or update the mutable columns of an existing one.

        ``cart_id`` and ``order_date`` are written only on insert.

        Args:
            order: Domain order; ``order_id`` None means insert.

        Returns:
            The stored order.
        """
        if order.order_id is None:
            obj = OrderModel.objects.create(
                cart_id=order.cart_id,
                order_date=order.order_date,
                order_desc=order.order_desc,
                order_fee=order.order_fee,
                status=_status_value(order.status),
                is_active=order.is_active,
            )
        else:
            obj = OrderModel.objects.get(order_id=order.order_id)
            obj.order_desc = order.order_desc
            obj.order_fee = order.order_fee
            obj.status = _status_value(order.status)
            obj.is_active = order.is_active
            obj.save(update_fields=["order_desc", "order_fee", "status", "is_active", "updated_at"])
        return _order_to_domain(obj)
