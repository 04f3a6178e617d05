# apps/customers/models.py

from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel


class Address(TimestampedModel):
    """
    Postal address. Used for order bill/ship addresses, customer
    defaults and enterprise (hub) addresses.
    """
    COPY_FIELDS = (
        "firstname", "lastname", "address1", "address2",
        "city", "zipcode", "phone", "state_name", "country_code",
    )

    firstname = models.CharField(max_length=100, blank=True)
    lastname = models.CharField(max_length=100, blank=True)
    address1 = models.CharField(max_length=255)
    address2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    zipcode = models.CharField(max_length=20)
    phone = models.CharField(max_length=30, blank=True)
    state_name = models.CharField(max_length=100, blank=True)
    country_code = models.CharField(max_length=2, default="AU")

    class Meta:
        db_table = "addresses"

    def __str__(self):
        return f"{self.full_name}, {self.address1}, {self.city}"

    @property
    def full_name(self):
        return f"{self.firstname} {self.lastname}".strip()

    def copy(self):
        """
        Unsaved duplicate, so an order never shares a row with a
        customer's saved defaults.
        """
        return Address(**{f: getattr(self, f) for f in self.COPY_FIELDS})

    def as_dict(self):
        data = {f: getattr(self, f) for f in self.COPY_FIELDS}
        data["id"] = str(self.id) if self.pk else None
        return data


class Customer(TimestampedModel):
    """
    A shopper as known to one enterprise (hub). Carries the hub's
    customer code and the shopper's default addresses.
    """
    enterprise = models.ForeignKey(
        "enterprises.Enterprise",
        on_delete=models.CASCADE,
        related_name="customers",
    )
    email = models.EmailField()
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers",
    )
    code = models.CharField(max_length=50, blank=True)
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    bill_address = models.ForeignKey(
        Address, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    ship_address = models.ForeignKey(
        Address, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )

    class Meta:
        db_table = "customers"
        constraints = [
            models.UniqueConstraint(fields=["enterprise", "email"], name="uniq_customer_email_per_enterprise"),
        ]

    def __str__(self):
        return f"{self.email} @ {self.enterprise_id}"
