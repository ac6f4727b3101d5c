"""Stateless mapping between persisted records and transfer shapes.

Every function here is pure: no I/O, no clock access (``now`` is passed in).
The update-path helper ``order_for_update`` is where the immutable fields of
an order (cart, creation date, status) are pinned to the existing record.
"""

from dataclasses import replace
from datetime import datetime

from .domain import Cart, Order, OrderStatus, UnknownOrderStatus, User
from .schemas import CartDTO, CartRefDTO, OrderDTO, OrderRefDTO, UserDTO


def _known_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as e:
        raise UnknownOrderStatus(f"Unknown order status: {value}") from e


def user_to_dto(user: User) -> UserDTO:
    return UserDTO(
        user_id=user.user_id,
        first_name=user.first_name,
        last_name=user.last_name,
        image_url=user.image_url,
        email=user.email,
        phone=user.phone,
    )


def user_from_dto(dto: UserDTO) -> User:
    return User(
        user_id=dto.user_id,
        first_name=dto.first_name,
        last_name=dto.last_name,
        image_url=dto.image_url,
        email=dto.email,
        phone=dto.phone,
    )


def cart_to_dto(cart: Cart, user: User | None = None) -> CartDTO:
    """Map a cart record to its transfer shape.

    Args:
        cart: Persisted cart.
        user: Owning user when enrichment succeeded; omitted otherwise.
    """
    return CartDTO(
        cart_id=cart.cart_id,
        user_id=cart.user_id,
        user=user_to_dto(user) if user is not None else None,
        orders=[
            OrderRefDTO(order_id=ref.order_id, order_status=_known_status(ref.status))
            for ref in cart.orders
        ],
    )


def cart_for_creation(dto: CartDTO) -> Cart:
    """Build a new cart record: no id, no orders, active."""
    return Cart(cart_id=None, user_id=dto.user_id, is_active=True, orders=[])


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        order_id=order.order_id,
        order_date=order.order_date,
        order_desc=order.order_desc,
        order_fee=order.order_fee,
        order_status=_known_status(order.status),
        cart=CartRefDTO(cart_id=order.cart_id),
    )


def order_for_creation(dto: OrderDTO, now: datetime) -> Order:
    """Build a new order record from validated input.

    Caller supplied id, date and status are discarded.
    """
    return Order(
        order_id=None,
        cart_id=dto.cart.cart_id,
        order_desc=dto.order_desc,
        order_fee=dto.order_fee,
        status=OrderStatus.CREATED,
        order_date=now,
        is_active=True,
    )


def order_for_update(dto: OrderDTO, existing: Order) -> Order:
    """Apply the mutable fields of ``dto`` on top of ``existing``.

    Only description and fee are taken from the input. Identifier, cart,
    creation date, status and active flag always come from ``existing``.
    """
    return replace(existing, order_desc=dto.order_desc, order_fee=dto.order_fee)
