"""Application services for carts and orders.

``CartService`` validates user references against the user directory and
enriches carts with user data. ``OrderService`` drives the order lifecycle.
Both receive their collaborators through the constructor (repositories,
user directory, a transaction scope factory) so the same code runs against
the Django ORM in production and against in-memory adapters in unit tests.

Every operation runs inside ``with self.atomic():``. Any exception leaving
the block, including user service failures, rolls the transaction back.
Errors are never translated here; the API layer maps them to responses.
"""

import logging
import math
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Callable, ContextManager, List

from . import mappers
from .domain import (
    ORDER_DESC_MAX_LENGTH,
    CartNotFound,
    CartRepositoryPort,
    InvalidInput,
    OrderNotFound,
    OrderRepositoryPort,
    OrderStatus,
    PaidOrderNotDeletable,
    UserDirectoryPort,
    UserNotFound,
    UserServiceUnavailable,
    next_status,
)
from .schemas import CartDTO, OrderDTO

logger = logging.getLogger("orders")

AtomicFactory = Callable[[], ContextManager]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartService:
    """Cart orchestration against the store and the remote user directory."""

    def __init__(
        self,
        carts: CartRepositoryPort,
        users: UserDirectoryPort,
        atomic: AtomicFactory = nullcontext,
    ):
        self.carts = carts
        self.users = users
        self.atomic = atomic

    def find_all(self) -> List[CartDTO]:
        """Return every active cart enriched with its owning user.

        A cart whose user cannot be resolved is left out of the result
        instead of failing the whole listing.
        """
        logger.info("fetch all active carts")
        result = []
        with self.atomic():
            for cart in self.carts.list_active():
                try:
                    user = self.users.fetch_user(cart.user_id)
                except (UserNotFound, UserServiceUnavailable) as exc:
                    logger.warning(
                        "dropping cart from listing, user lookup failed",
                        extra={"cart_id": cart.cart_id, "user_id": cart.user_id, "error": exc.code},
                    )
                    continue
                result.append(mappers.cart_to_dto(cart, user))
        return result

    def find_by_id(self, cart_id: int) -> CartDTO:
        """Return one active cart enriched with its user.

        Raises:
            CartNotFound: No active cart with that id.
            UserNotFound, UserServiceUnavailable: Enrichment failed.
        """
        logger.info("fetch active cart by id", extra={"cart_id": cart_id})
        with self.atomic():
            cart = self.carts.get_active(cart_id)
            if cart is None:
                raise CartNotFound(f"Active cart with id: {cart_id} not found")
            user = self.users.fetch_user(cart.user_id)
            return mappers.cart_to_dto(cart, user)

    def save(self, dto: CartDTO) -> CartDTO:
        """Create a cart for an existing user.

        Caller supplied ``cart_id`` and ``orders`` are ignored.

        Raises:
            InvalidInput: ``MISSING_USER_ID`` when no user id is given.
            UserNotFound: The user service does not know the user.
            UserServiceUnavailable: The user service could not be asked.
        """
        logger.info("save cart", extra={"user_id": dto.user_id})
        if dto.user_id is None:
            raise InvalidInput("UserId must not be null when saving a cart", code="MISSING_USER_ID")

        with self.atomic():
            user = self.users.fetch_user(dto.user_id)
            saved = self.carts.save(mappers.cart_for_creation(dto))
        return mappers.cart_to_dto(saved, user)

    def delete_by_id(self, cart_id: int) -> None:
        """Soft delete a cart. Already inactive carts can be deleted again."""
        with self.atomic():
            cart = self.carts.get(cart_id)
            if cart is None:
                raise CartNotFound(f"Cart with id: {cart_id} not found")
            cart.is_active = False
            self.carts.save(cart)
        logger.info("cart soft deleted", extra={"cart_id": cart_id})


class OrderService:
    """Order lifecycle: validation, status machine and guarded soft delete."""

    def __init__(
        self,
        orders: OrderRepositoryPort,
        carts: CartRepositoryPort,
        atomic: AtomicFactory = nullcontext,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.orders = orders
        self.carts = carts
        self.atomic = atomic
        self.clock = clock

    def find_all(self) -> List[OrderDTO]:
        logger.info("fetch all active orders")
        with self.atomic():
            return [mappers.order_to_dto(o) for o in self.orders.list_active()]

    def find_by_id(self, order_id: int) -> OrderDTO:
        logger.info("fetch active order by id", extra={"order_id": order_id})
        with self.atomic():
            return mappers.order_to_dto(self._load_active(order_id))

    def save(self, dto: OrderDTO) -> OrderDTO:
        """Create an order in status ``CREATED`` dated now.

        Raises:
            InvalidInput: ``MISSING_CART``, ``EMPTY_DESCRIPTION`` or
                ``INVALID_FEE``.
            CartNotFound: The referenced cart does not exist.
        """
        logger.info("save order")
        if dto.cart is None or dto.cart.cart_id is None:
            raise InvalidInput("Order must be associated with a cart", code="MISSING_CART")
        self._validate_mutable_fields(dto)

        with self.atomic():
            if not self.carts.exists(dto.cart.cart_id):
                raise CartNotFound(f"Cart not found with ID: {dto.cart.cart_id}")
            saved = self.orders.save(mappers.order_for_creation(dto, self.clock()))
        logger.info("order created", extra={"order_id": saved.order_id, "cart_id": saved.cart_id})
        return mappers.order_to_dto(saved)

    def update_status(self, order_id: int) -> OrderDTO:
        """Advance the order exactly one step along the status sequence.

        Raises:
            OrderNotFound: No active order with that id.
            OrderInTerminalState: The order is already ``IN_PAYMENT``.
            UnknownOrderStatus: The stored status is not a known one.
        """
        with self.atomic():
            order = self._load_active(order_id)
            previous = order.status
            order.status = next_status(previous)
            saved = self.orders.save(order)
        logger.info(
            "order status updated",
            extra={"order_id": order_id, "from_status": str(getattr(previous, "value", previous)),
                   "to_status": saved.status.value},
        )
        return mappers.order_to_dto(saved)

    def update(self, order_id: int, dto: OrderDTO) -> OrderDTO:
        """Update description and fee of an active order.

        Cart, creation date and status of the existing order are kept
        whatever the input says; status only moves through ``update_status``.
        """
        logger.info("update order", extra={"order_id": order_id})
        with self.atomic():
            existing = self._load_active(order_id)
            self._validate_mutable_fields(dto)
            saved = self.orders.save(mappers.order_for_update(dto, existing))
        return mappers.order_to_dto(saved)

    def delete_by_id(self, order_id: int) -> None:
        """Soft delete an order unless it is already in payment.

        Raises:
            OrderNotFound: No active order with that id.
            PaidOrderNotDeletable: The order is ``IN_PAYMENT``.
        """
        with self.atomic():
            order = self._load_active(order_id)
            if order.status == OrderStatus.IN_PAYMENT:
                raise PaidOrderNotDeletable(
                    f"Cannot delete order with ID {order_id} because it's already paid"
                )
            order.is_active = False
            self.orders.save(order)
        logger.info("order soft deleted", extra={"order_id": order_id})

    # ---- helpers ----
    def _load_active(self, order_id: int):
        order = self.orders.get_active(order_id)
        if order is None:
            raise OrderNotFound(f"Order with id: {order_id} not found")
        return order

    @staticmethod
    def _validate_mutable_fields(dto: OrderDTO) -> None:
        if not dto.order_desc:
            raise InvalidInput("Order description must not be null or empty", code="EMPTY_DESCRIPTION")
        if len(dto.order_desc) > ORDER_DESC_MAX_LENGTH:
            raise InvalidInput(
                f"Order description must be at most {ORDER_DESC_MAX_LENGTH} characters",
                code="DESCRIPTION_TOO_LONG",
            )
        # NaN and inf slip past a plain "< 0" check
        if dto.order_fee is None or not math.isfinite(dto.order_fee) or dto.order_fee < 0:
            raise InvalidInput("Order fee must be a finite, non-negative number", code="INVALID_FEE")
