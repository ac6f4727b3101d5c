from django.db import models

from .domain import ORDER_DESC_MAX_LENGTH


class ActiveManager(models.Manager):
    """Manager restricted to rows whose soft-delete flag is still set.

    Every "active" read in the repositories goes through this manager, so
    soft-deleted rows cannot leak into a read path by omission.
    """

    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class CartModel(models.Model):
    cart_id = models.AutoField(primary_key=True)
    # Owner lives in the user service; no FK on purpose
    user_id = models.IntegerField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        db_table = "carts"
        ordering = ["cart_id"]


class OrderModel(models.Model):
    class Status(models.TextChoices):
        CREATED = "CREATED"
        ORDERED = "ORDERED"
        IN_PAYMENT = "IN_PAYMENT"

    order_id = models.AutoField(primary_key=True)
    order_date = models.DateTimeField()
    order_desc = models.CharField(max_length=ORDER_DESC_MAX_LENGTH)
    order_fee = models.FloatField()
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.CREATED)
    is_active = models.BooleanField(default=True)
    cart = models.ForeignKey(
        CartModel,
        on_delete=models.PROTECT,
        related_name="orders",
        db_column="cart_id",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        db_table = "orders"
        ordering = ["order_id"]
