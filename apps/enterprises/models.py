from decimal import Decimal

from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel


class Enterprise(TimestampedModel):
    """
    A business on the marketplace. Distributors (hubs) run shopfronts
    and take orders; suppliers produce the variants hubs sell.
    """
    name = models.CharField(max_length=255, unique=True)
    address = models.ForeignKey(
        "customers.Address",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    is_distributor = models.BooleanField(default=False, db_index=True)
    is_supplier = models.BooleanField(default=False, db_index=True)

    managers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="enterprises",
    )

    class Meta:
        db_table = "enterprises"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def ready_for_checkout(self) -> bool:
        """
        A hub can only take orders once shoppers have a way to receive
        the goods and a way to pay for them.
        """
        return (
            self.shipping_methods.exists()
            and self.payment_methods.filter(active=True).exists()
        )

    def available_shipping_methods(self):
        return self.shipping_methods.all()

    def available_payment_methods(self):
        return self.payment_methods.filter(active=True)


class ShippingMethod(TimestampedModel):
    name = models.CharField(max_length=255)
    distributors = models.ManyToManyField(Enterprise, related_name="shipping_methods")
    requires_ship_address = models.BooleanField(
        default=True,
        help_text="False for pickup: the hub's address is used",
    )
    fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "shipping_methods"

    def __str__(self):
        return self.name


class PaymentMethod(TimestampedModel):
    name = models.CharField(max_length=255)
    distributors = models.ManyToManyField(Enterprise, related_name="payment_methods")
    active = models.BooleanField(default=True)

    class Meta:
        db_table = "payment_methods"

    def __str__(self):
        return self.name
