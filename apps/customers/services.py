import logging

from django.db import transaction

from .models import Address, Customer

logger = logging.getLogger(__name__)


class AddressFinder:
    """
    Finds the best saved bill/ship address for a checkout.

    Lookup order: the customer's defaults, then defaults on any customer
    record of the signed-in user, then the addresses of the last completed
    order. Searching past orders by email is only allowed when the email
    belongs to the user or the customer, so guests can't look up someone
    else's address.
    """

    def __init__(self, email=None, customer=None, user=None):
        self.email = email
        self.customer = customer
        self.user = user if user is not None and user.is_authenticated else None

    @property
    def bill_address(self):
        return self._find("bill_address")

    @property
    def ship_address(self):
        return self._find("ship_address")

    def _find(self, kind):
        address = (
            self._customer_preferred(kind)
            or self._user_preferred(kind)
            or self._last_used(kind)
        )
        return address.copy() if address else None

    def _customer_preferred(self, kind):
        if self.customer is None:
            return None
        return getattr(self.customer, kind)

    def _user_preferred(self, kind):
        if self.user is None:
            return None
        customer = (
            Customer.objects.filter(user=self.user, **{f"{kind}__isnull": False})
            .select_related(kind)
            .order_by("-updated_at")
            .first()
        )
        return getattr(customer, kind) if customer else None

    def _allow_search_by_email(self):
        if not self.email:
            return False
        email = self.email.lower()
        if self.user is not None and self.user.email.lower() == email:
            return True
        return self.customer is not None and self.customer.email.lower() == email

    def _last_used(self, kind):
        from apps.orders.models import Order

        orders = Order.objects.filter(completed_at__isnull=False, **{f"{kind}__isnull": False})
        if self.user is not None:
            orders = orders.filter(user=self.user)
        elif self._allow_search_by_email():
            orders = orders.filter(email__iexact=self.email)
        else:
            return None

        order = orders.select_related(kind).order_by("-completed_at").first()
        return getattr(order, kind) if order else None


class CustomerService:

    @staticmethod
    def find_or_create(enterprise, email, user=None, address=None):
        customer, created = Customer.objects.get_or_create(
            enterprise=enterprise,
            email=email.lower(),
            defaults={
                "user": user if user is not None and user.is_authenticated else None,
                "first_name": address.firstname if address else "",
                "last_name": address.lastname if address else "",
            },
        )
        if created:
            logger.info("Created customer %s for enterprise %s", customer.email, enterprise.pk)
        return customer

    @staticmethod
    @transaction.atomic
    def save_default_addresses(customer, bill_address=None, ship_address=None):
        """
        Stores copies of the order's addresses as the customer's defaults.
        """
        customer = Customer.objects.select_for_update().get(pk=customer.pk)
        update_fields = ["updated_at"]

        if bill_address is not None:
            saved = bill_address.copy()
            saved.save()
            customer.bill_address = saved
            update_fields.append("bill_address")

        if ship_address is not None:
            saved = ship_address.copy()
            saved.save()
            customer.ship_address = saved
            update_fields.append("ship_address")

        customer.save(update_fields=update_fields)
        return customer
