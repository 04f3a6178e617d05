from decimal import Decimal

from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel
from apps.utils.utils import generate_order_number, generate_token

__all__ = ["Order"]


class Order(TimestampedModel):
    class State(models.TextChoices):
        CART = "cart", "Cart"
        ADDRESS = "address", "Address"
        DELIVERY = "delivery", "Delivery"
        PAYMENT = "payment", "Payment"
        CONFIRMATION = "confirmation", "Confirmation"
        COMPLETE = "complete", "Complete"
        CANCELED = "canceled", "Canceled"

    class ShipmentState(models.TextChoices):
        PENDING = "pending", "Pending"
        READY = "ready", "Ready"
        SHIPPED = "shipped", "Shipped"

    class PaymentState(models.TextChoices):
        BALANCE_DUE = "balance_due", "Balance due"
        PAID = "paid", "Paid"
        VOID = "void", "Void"

    number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )
    email = models.EmailField(blank=True)
    customer = models.ForeignKey(
        "customers.Customer",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )
    distributor = models.ForeignKey(
        "enterprises.Enterprise",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="distributed_orders",
    )
    order_cycle = models.ForeignKey(
        "order_cycles.OrderCycle",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )

    state = models.CharField(max_length=20, choices=State.choices, default=State.CART, db_index=True)
    bill_address = models.ForeignKey(
        "customers.Address", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    ship_address = models.ForeignKey(
        "customers.Address", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    shipping_method = models.ForeignKey(
        "enterprises.ShippingMethod", null=True, blank=True, on_delete=models.SET_NULL, related_name="orders"
    )
    payment_method = models.ForeignKey(
        "enterprises.PaymentMethod", null=True, blank=True, on_delete=models.SET_NULL, related_name="orders"
    )
    shipment_state = models.CharField(max_length=20, choices=ShipmentState.choices, blank=True)
    payment_state = models.CharField(max_length=20, choices=PaymentState.choices, blank=True)

    item_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    shipment_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    completed_at = models.DateTimeField(null=True, blank=True, db_index=True)
    # Guest access token, kept in the session as `access_token`
    token = models.CharField(max_length=64, editable=False)
    special_instructions = models.TextField(blank=True)

    # Transient checkout flags, never persisted
    manual_shipping_selection = False
    checkout_processing = False

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["distributor", "completed_at"], name="orders_distributor_done_idx"),
        ]

    def __str__(self):
        return f"{self.number} [{self.state}]"

    def save(self, *args, **kwargs):
        if not self.number:
            self.number = self._unique_number()
        if not self.token:
            self.token = generate_token()
        super().save(*args, **kwargs)

    @classmethod
    def _unique_number(cls):
        number = generate_order_number()
        while cls.objects.filter(number=number).exists():
            number = generate_order_number()
        return number

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def checkout_allowed(self) -> bool:
        return self.line_items.exists()

    def insufficient_stock_lines(self):
        return [
            line_item
            for line_item in self.line_items.select_related("variant")
            if not line_item.variant.can_supply(line_item.quantity)
        ]

    def update_totals(self):
        self.item_total = sum(
            (li.amount for li in self.line_items.all()), Decimal("0.00")
        )
        self.shipment_total = self.shipping_method.fee if self.shipping_method else Decimal("0.00")
        self.total = self.item_total + self.shipment_total

    def empty(self):
        """
        Drops every line item and resets totals; the order itself stays.
        """
        self.line_items.all().delete()
        self.item_total = Decimal("0.00")
        self.shipment_total = Decimal("0.00")
        self.total = Decimal("0.00")
        self.save(update_fields=["item_total", "shipment_total", "total", "updated_at"])
