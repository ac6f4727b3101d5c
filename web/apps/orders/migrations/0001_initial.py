import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CartModel",
            fields=[
                ("cart_id", models.AutoField(primary_key=True, serialize=False)),
                ("user_id", models.IntegerField()),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "carts",
                "ordering": ["cart_id"],
            },
        ),
        migrations.CreateModel(
            name="OrderModel",
            fields=[
                ("order_id", models.AutoField(primary_key=True, serialize=False)),
                ("order_date", models.DateTimeField()),
                ("order_desc", models.CharField(max_length=255)),
                ("order_fee", models.FloatField()),
                (
                    "status",
                    models.CharField(
                        choices=[("CREATED", "Created"), ("ORDERED", "Ordered"), ("IN_PAYMENT", "In Payment")],
                        default="CREATED",
                        max_length=32,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cart",
                    models.ForeignKey(
                        db_column="cart_id",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="orders.cartmodel",
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["order_id"],
            },
        ),
    ]
