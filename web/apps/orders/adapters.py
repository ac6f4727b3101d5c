"""In-process adapters for the orders domain ports.

``UserDirectoryStub`` implements ``UserDirectoryPort`` without any network
call, and the in-memory repositories implement the repository ports without
a database. They are intended for unit tests and local development where
deterministic behavior is useful and external services are not required.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .domain import Cart, Order, User, UserNotFound


class UserDirectoryStub:
    """Stub implementation of ``UserDirectoryPort``.

    Without an explicit seed, user ids 1 to 1000 (inclusive) exist and get
    a generated profile; every other id is reported as not found. This is a
    deterministic rule for testing purposes.
    """

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users = {u.user_id: u for u in users} if users is not None else None

    def fetch_user(self, user_id: int) -> User:
        """Look up a user.

        Args:
            user_id: Id to resolve.

        Returns:
            User: The seeded or generated user.

        Raises:
            UserNotFound: If the id is not known to the stub.
        """
        if self._users is not None:
            if user_id not in self._users:
                raise UserNotFound(f"User with id {user_id} not found")
            return self._users[user_id]
        if not 1 <= user_id <= 1000:
            raise UserNotFound(f"User with id {user_id} not found")
        return User(
            user_id=user_id,
            first_name="User",
            last_name=str(user_id),
            email=f"user{user_id}@example.com",
        )


class InMemoryCartRepository:
    """Dict-backed ``CartRepositoryPort``. Returns copies, never live records."""

    def __init__(self, carts: Iterable[Cart] = ()):
        self._rows: Dict[int, Cart] = {}
        self._next_id = 1
        for cart in carts:
            self.save(cart)

    def _active(self) -> List[Cart]:
        return [c for c in self._rows.values() if c.is_active]

    def list_active(self) -> List[Cart]:
        return [replace(c, orders=list(c.orders)) for c in self._active()]

    def get_active(self, cart_id: int) -> Optional[Cart]:
        for cart in self._active():
            if cart.cart_id == cart_id:
                return replace(cart, orders=list(cart.orders))
        return None

    def get(self, cart_id: int) -> Optional[Cart]:
        cart = self._rows.get(cart_id)
        return replace(cart, orders=list(cart.orders)) if cart else None

    def exists(self, cart_id: int) -> bool:
        return cart_id in self._rows

    def save(self, cart: Cart) -> Cart:
        if cart.cart_id is None:
            cart = replace(cart, cart_id=self._next_id)
        elif cart.cart_id in self._rows:
            # user_id is immutable once stored
            cart = replace(cart, user_id=self._rows[cart.cart_id].user_id)
        self._next_id = max(self._next_id, cart.cart_id + 1)
        self._rows[cart.cart_id] = replace(cart, orders=list(cart.orders))
        return self.get(cart.cart_id)


class InMemoryOrderRepository:
    """Dict-backed ``OrderRepositoryPort``. Returns copies, never live records."""

    def __init__(self, orders: Iterable[Order] = ()):
        self._rows: Dict[int, Order] = {}
        self._next_id = 1
        for order in orders:
            self.save(order)

    def _active(self) -> List[Order]:
        return [o for o in self._rows.values() if o.is_active]

    def list_active(self) -> List[Order]:
        return [replace(o) for o in self._active()]

    def get_active(self, order_id: int) -> Optional[Order]:
        for order in self._active():
            if order.order_id == order_id:
                return replace(order)
        return None

    def raw(self, order_id: int) -> Optional[Order]:
        """Row as stored, including soft-deleted ones."""
        order = self._rows.get(order_id)
        return replace(order) if order else None

    def save(self, order: Order) -> Order:
        if order.order_id is None:
            order = replace(order, order_id=self._next_id)
        elif order.order_id in self._rows:
            stored = self._rows[order.order_id]
            # cart and creation date are written only on insert
            order = replace(order, cart_id=stored.cart_id, order_date=stored.order_date)
        self._next_id = max(self._next_id, order.order_id + 1)
        self._rows[order.order_id] = replace(order)
        return replace(order)
