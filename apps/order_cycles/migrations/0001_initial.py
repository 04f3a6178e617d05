import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("enterprises", "0001_initial"),
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="OrderCycle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                ("orders_open_at", models.DateTimeField(blank=True, null=True)),
                ("orders_close_at", models.DateTimeField(blank=True, null=True)),
                (
                    "coordinator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="coordinated_order_cycles",
                        to="enterprises.enterprise",
                    ),
                ),
                (
                    "distributors",
                    models.ManyToManyField(
                        blank=True, related_name="distributed_order_cycles", to="enterprises.enterprise"
                    ),
                ),
                (
                    "variants",
                    models.ManyToManyField(blank=True, related_name="order_cycles", to="catalog.variant"),
                ),
            ],
            options={
                "db_table": "order_cycles",
                "ordering": ["-orders_close_at"],
            },
        ),
    ]
