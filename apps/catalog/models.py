# apps/catalog/models.py
from decimal import Decimal

from django.db import models

from apps.utils.models import SoftDeleteModel, TimestampedModel


class Product(TimestampedModel):
    """
    A supplier's product. Sellable units live on Variant.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    supplier = models.ForeignKey(
        "enterprises.Enterprise",
        on_delete=models.PROTECT,
        related_name="products",
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Variant(TimestampedModel, SoftDeleteModel):
    """
    Sellable unit of a product (e.g. "Big", "500g").

    NOTE:
    - Soft deleted: `Variant.objects` hides deleted rows but line items
      keep pointing at them, so past orders still report correctly.
    - Variants linked to an external catalog get their stock from it
      (see apps.inventory.services.StockSyncService).
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    supplier = models.ForeignKey(
        "enterprises.Enterprise",
        on_delete=models.PROTECT,
        related_name="supplied_variants",
    )

    sku = models.CharField(max_length=100, blank=True, db_index=True)
    unit_description = models.CharField(max_length=255, blank=True)
    display_name = models.CharField(max_length=255, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    # Packing dimensions
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    depth = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    temperature_controlled = models.BooleanField(default=False)

    # Stock
    on_hand = models.IntegerField(default=0)
    on_demand = models.BooleanField(default=False)

    # External catalog link
    external_catalog_url = models.URLField(blank=True, db_index=True)
    external_product_id = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "variants"
        indexes = [
            models.Index(fields=["product", "deleted_at"], name="variants_product_deleted_idx"),
        ]

    def __str__(self):
        return f"{self.product.name} - {self.full_name}"

    @property
    def full_name(self):
        if self.display_name and self.unit_description:
            return f"{self.display_name} ({self.unit_description})"
        return self.display_name or self.unit_description

    @property
    def is_linked(self):
        return bool(self.external_catalog_url and self.external_product_id)

    def can_supply(self, quantity: int) -> bool:
        return self.on_demand or self.on_hand >= quantity
