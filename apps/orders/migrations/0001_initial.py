import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("customers", "0002_customer"),
        ("enterprises", "0001_initial"),
        ("order_cycles", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("number", models.CharField(editable=False, max_length=20, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("cart", "Cart"),
                            ("address", "Address"),
                            ("delivery", "Delivery"),
                            ("payment", "Payment"),
                            ("confirmation", "Confirmation"),
                            ("complete", "Complete"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="cart",
                        max_length=20,
                    ),
                ),
                (
                    "shipment_state",
                    models.CharField(
                        blank=True,
                        choices=[("pending", "Pending"), ("ready", "Ready"), ("shipped", "Shipped")],
                        max_length=20,
                    ),
                ),
                (
                    "payment_state",
                    models.CharField(
                        blank=True,
                        choices=[("balance_due", "Balance due"), ("paid", "Paid"), ("void", "Void")],
                        max_length=20,
                    ),
                ),
                ("item_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("shipment_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("completed_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("token", models.CharField(editable=False, max_length=64)),
                ("special_instructions", models.TextField(blank=True)),
                (
                    "bill_address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="customers.address",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="customers.customer",
                    ),
                ),
                (
                    "distributor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="distributed_orders",
                        to="enterprises.enterprise",
                    ),
                ),
                (
                    "order_cycle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="order_cycles.ordercycle",
                    ),
                ),
                (
                    "payment_method",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="enterprises.paymentmethod",
                    ),
                ),
                (
                    "ship_address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="customers.address",
                    ),
                ),
                (
                    "shipping_method",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="enterprises.shippingmethod",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["distributor", "completed_at"], name="orders_distributor_done_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LineItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="orders.order",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="line_items",
                        to="catalog.variant",
                    ),
                ),
            ],
            options={
                "db_table": "line_items",
                "ordering": ["created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="lineitem",
            constraint=models.UniqueConstraint(fields=("order", "variant"), name="uniq_line_item_variant_per_order"),
        ),
    ]
