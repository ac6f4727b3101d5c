"""Pydantic schemas for carts, orders and users.

These are the transfer shapes exchanged with API clients and with the user
service. Field names are snake_case in Python and camelCase on the wire;
both spellings are accepted on input.

Request schemas only check types. Business rules (empty description,
negative fee, missing references) are enforced by the services so each
failure keeps its own error code.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .domain import OrderStatus


class _TransferModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserDTO(_TransferModel):
    """User record as served by the user service."""

    user_id: int = Field(alias="userId")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    email: Optional[str] = None
    phone: Optional[str] = None


class CartRefDTO(_TransferModel):
    """Cart reference nested in an order; never expands the cart graph."""

    cart_id: Optional[int] = Field(default=None, alias="cartId")


class OrderRefDTO(_TransferModel):
    order_id: int = Field(alias="orderId")
    order_status: OrderStatus = Field(alias="orderStatus")


class CartDTO(_TransferModel):
    """Cart transfer shape.

    Attributes:
        cart_id: Assigned by the store; ignored on create.
        user_id: Owning user; required on create.
        user: Owning user record, only set when enrichment succeeded.
        orders: Active orders of the cart; ignored on create.
    """

    cart_id: Optional[int] = Field(default=None, alias="cartId")
    user_id: Optional[int] = Field(default=None, alias="userId")
    user: Optional[UserDTO] = None
    orders: List[OrderRefDTO] = Field(default_factory=list)

    @field_validator("orders", mode="before")
    @classmethod
    def ignore_unreadable_orders(cls, v):
        """Inbound order lists are discarded anyway; never reject a body for them."""
        try:
            return [OrderRefDTO.model_validate(ref) for ref in v]
        except (TypeError, ValidationError):
            return []


class OrderDTO(_TransferModel):
    """Order transfer shape.

    ``order_id``, ``order_date`` and ``order_status`` are output fields: the
    services ignore whatever the caller sends for them.
    """

    order_id: Optional[int] = Field(default=None, alias="orderId")
    order_date: Optional[datetime] = Field(default=None, alias="orderDate")
    order_desc: Optional[str] = Field(default=None, alias="orderDesc")
    order_fee: Optional[float] = Field(default=None, alias="orderFee")
    order_status: Optional[OrderStatus] = Field(default=None, alias="orderStatus")
    cart: Optional[CartRefDTO] = None

    @field_validator("order_status", mode="before")
    @classmethod
    def ignore_unknown_status(cls, v):
        try:
            return OrderStatus(v)
        except (TypeError, ValueError):
            return None


def dump(dto: BaseModel) -> dict:
    """Serialize a DTO to its JSON wire shape (camelCase, no nulls)."""
    return dto.model_dump(mode="json", by_alias=True, exclude_none=True)


def collection(dtos: List[BaseModel]) -> dict:
    """Wrap a list of DTOs in the ``{"collection": [...]}`` envelope."""
    return {"collection": [dump(d) for d in dtos]}
