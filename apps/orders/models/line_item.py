from decimal import Decimal

from django.db import models

from apps.utils.models import TimestampedModel

from .order import Order

__all__ = ["LineItem"]


class LineItem(TimestampedModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="line_items")
    # PROTECT: variants are soft deleted, never removed under an order
    variant = models.ForeignKey("catalog.Variant", on_delete=models.PROTECT, related_name="line_items")

    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "line_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["order", "variant"], name="uniq_line_item_variant_per_order"),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.variant_id}"

    @property
    def amount(self) -> Decimal:
        return self.price * self.quantity

    @property
    def product(self):
        return self.variant.product
