"""Service provider helpers for wiring the services with their ports.

``get_cart_service`` and ``get_order_service`` return services bound to the
Django ORM repositories and to ``django.db.transaction.atomic`` as their
transaction scope. The user directory is the HTTP client when
``settings.USE_HTTP_ADAPTERS`` is truthy, and the in-process stub otherwise
(tests and local development without a user service).
"""

from django.conf import settings
from django.db import transaction

from .adapters import UserDirectoryStub
from .domain import UserDirectoryPort
from .http_adapters import HttpUserClient
from .repository import CartRepository, OrderRepository
from .services import CartService, OrderService


def get_user_directory() -> UserDirectoryPort:
    """Return the user directory selected by ``settings.USE_HTTP_ADAPTERS``."""
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return HttpUserClient()
    return UserDirectoryStub()


def get_cart_service() -> CartService:
    return CartService(
        carts=CartRepository(),
        users=get_user_directory(),
        atomic=transaction.atomic,
    )


def get_order_service() -> OrderService:
    return OrderService(
        orders=OrderRepository(),
        carts=CartRepository(),
        atomic=transaction.atomic,
    )
