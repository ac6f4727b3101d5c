"""Domain models, errors, ports and the order status machine.

This module contains the dataclasses used to move cart, order and user
records between the store, the remote user service and the services layer,
the error hierarchy raised by the services, and the protocol definitions
(ports) for the repositories and the user directory.

The status machine is deliberately a fixed ordered sequence: an order can
only ever move one step forward, and there is no API to pick a target state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol, Union


# ---- Enums ----
class OrderStatus(str, Enum):
    """Enumeration of the possible order statuses.

    The lifecycle is strictly ``CREATED -> ORDERED -> IN_PAYMENT``;
    ``IN_PAYMENT`` is terminal."""

    CREATED = "CREATED"
    ORDERED = "ORDERED"
    IN_PAYMENT = "IN_PAYMENT"


STATUS_SEQUENCE = (OrderStatus.CREATED, OrderStatus.ORDERED, OrderStatus.IN_PAYMENT)

ORDER_DESC_MAX_LENGTH = 255


# ---- Errors ----
class OrderingError(Exception):
    """Base class for every error raised by the carts/orders services.

    Attributes:
        code: Short machine readable code returned to API clients.
        message: Human readable explanation.
    """

    code = "ORDERING_ERROR"

    def __init__(self, message: str | None = None, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message or self.code
        super().__init__(self.code)


class NotFoundError(OrderingError):
    code = "NOT_FOUND"


class CartNotFound(NotFoundError):
    code = "CART_NOT_FOUND"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"


class InvalidInput(OrderingError, ValueError):
    """Malformed or missing input field.

    ``str(exc)`` is the code (``MISSING_CART``, ``EMPTY_DESCRIPTION``,
    ``DESCRIPTION_TOO_LONG``, ``INVALID_FEE``, ``MISSING_USER_ID``) so callers can tell the distinct
    validation failures apart.
    """

    code = "INVALID_INPUT"


class IllegalOrderState(OrderingError):
    code = "ILLEGAL_ORDER_STATE"


class OrderInTerminalState(IllegalOrderState):
    code = "ORDER_IN_TERMINAL_STATE"


class PaidOrderNotDeletable(IllegalOrderState):
    code = "CANNOT_DELETE_PAID_ORDER"


class UnknownOrderStatus(OrderingError):
    """A persisted status outside ``STATUS_SEQUENCE`` was found."""

    code = "UNKNOWN_ORDER_STATUS"


class UserServiceUnavailable(OrderingError):
    """The user service could not be reached or answered unexpectedly."""

    code = "UPSTREAM_UNAVAILABLE"


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class User:
    """User record owned by the remote user service.

    Only ``user_id`` is guaranteed; the rest is whatever the user service
    returned.
    """

    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class OrderRef:
    """Back-reference from a cart to one of its orders."""

    order_id: int
    status: Union[OrderStatus, str]


@dataclass
class Cart:
    """Persisted cart record.

    Attributes:
        cart_id: Store assigned identifier, or None if not yet saved.
        user_id: Owning user in the user service. Immutable once saved.
        is_active: Soft-delete flag; False means logically deleted.
        orders: Active orders referencing this cart.
    """

    cart_id: int | None
    user_id: int
    is_active: bool = True
    orders: List[OrderRef] = field(default_factory=list)


@dataclass
class Order:
    """Persisted order record.

    Attributes:
        order_id: Store assigned identifier, or None if not yet saved.
        cart_id: Cart the order belongs to. Immutable once saved.
        order_desc: Free text description, never empty.
        order_fee: Non-negative fee.
        status: Current lifecycle status. May hold a raw string when the
            store contains a value outside ``OrderStatus``.
        order_date: Creation timestamp, set once.
        is_active: Soft-delete flag.
    """

    order_id: int | None
    cart_id: int
    order_desc: str
    order_fee: float
    status: Union[OrderStatus, str] = OrderStatus.CREATED
    order_date: datetime | None = None
    is_active: bool = True


# ---- Status machine ----
def next_status(current: Union[OrderStatus, str]) -> OrderStatus:
    """Return the status that follows ``current`` in ``STATUS_SEQUENCE``.

    Args:
        current: Status the order is in right now.

    Returns:
        The next status in the fixed sequence.

    Raises:
        OrderInTerminalState: If ``current`` is the last status.
        UnknownOrderStatus: If ``current`` is not part of the sequence.
    """
    if current not in STATUS_SEQUENCE:
        raise UnknownOrderStatus(f"Unknown order status: {current}")
    position = STATUS_SEQUENCE.index(current)
    if position == len(STATUS_SEQUENCE) - 1:
        raise OrderInTerminalState(
            f"Order is already {OrderStatus(current).value} and cannot be updated further"
        )
    return STATUS_SEQUENCE[position + 1]


# ---- Ports (DIP) ----
class UserDirectoryPort(Protocol):
    """Port describing the remote user lookup.

    One blocking call per invocation, no retry and no caching.
    """

    def fetch_user(self, user_id: int) -> User:
        """Resolve a user by id.

        Raises:
            UserNotFound: When the user service has no such user.
            UserServiceUnavailable: On any transport or protocol failure.
        """
        raise NotImplementedError()


class CartRepositoryPort(Protocol):
    """Persistence port for carts. ``*_active`` reads skip soft-deleted rows."""

    def list_active(self) -> List[Cart]:
        raise NotImplementedError()

    def get_active(self, cart_id: int) -> Optional[Cart]:
        raise NotImplementedError()

    def get(self, cart_id: int) -> Optional[Cart]:
        """Load a cart regardless of its active flag."""
        raise NotImplementedError()

    def exists(self, cart_id: int) -> bool:
        raise NotImplementedError()

    def save(self, cart: Cart) -> Cart:
        """Insert when ``cart_id`` is None, otherwise update the flag."""
        raise NotImplementedError()


class OrderRepositoryPort(Protocol):
    """Persistence port for orders. ``*_active`` reads skip soft-deleted rows."""

    def list_active(self) -> List[Order]:
        raise NotImplementedError()

    def get_active(self, order_id: int) -> Optional[Order]:
        raise NotImplementedError()

    def save(self, order: Order) -> Order:
        """Insert when ``order_id`` is None, otherwise update mutable fields."""
        raise NotImplementedError()
