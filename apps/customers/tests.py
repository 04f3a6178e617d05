from datetime import timedelta

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from django.utils import timezone

from apps.enterprises.models import Enterprise
from apps.orders.models import Order

from .models import Address, Customer
from .services import AddressFinder, CustomerService

User = get_user_model()


def make_address(firstname="Jane", address1="1 Main St", city="Melbourne"):
    return Address.objects.create(
        firstname=firstname, lastname="Doe", address1=address1, city=city, zipcode="3000",
    )


class AddressFinderTests(TestCase):
    def setUp(self):
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)
        self.user = User.objects.create_user(email="jane@example.com", password="pass1234")

    def test_customer_defaults_win(self):
        customer = Customer.objects.create(
            enterprise=self.hub, email="jane@example.com",
            bill_address=make_address(address1="Customer Bill"),
            ship_address=make_address(address1="Customer Ship"),
        )
        finder = AddressFinder("jane@example.com", customer, self.user)

        self.assertEqual(finder.bill_address.address1, "Customer Bill")
        self.assertEqual(finder.ship_address.address1, "Customer Ship")

    def test_returns_unsaved_copies(self):
        saved = make_address()
        customer = Customer.objects.create(enterprise=self.hub, email="jane@example.com", bill_address=saved)

        found = AddressFinder("jane@example.com", customer, None).bill_address

        self.assertIsNone(found.pk)
        self.assertEqual(found.full_name, "Jane Doe")

    def test_falls_back_to_user_customer_records(self):
        other_hub = Enterprise.objects.create(name="Other Hub", is_distributor=True)
        Customer.objects.create(
            enterprise=other_hub, email="jane@example.com", user=self.user,
            bill_address=make_address(address1="Other Hub Default"),
        )

        finder = AddressFinder("jane@example.com", None, self.user)

        self.assertEqual(finder.bill_address.address1, "Other Hub Default")
        self.assertIsNone(finder.ship_address)

    def test_falls_back_to_last_completed_order(self):
        Order.objects.create(
            distributor=self.hub, user=self.user, email=self.user.email,
            bill_address=make_address(address1="Old Order"),
            completed_at=timezone.now() - timedelta(days=10),
        )
        Order.objects.create(
            distributor=self.hub, user=self.user, email=self.user.email,
            bill_address=make_address(address1="Recent Order"),
            completed_at=timezone.now() - timedelta(days=1),
        )

        finder = AddressFinder(self.user.email, None, self.user)
        self.assertEqual(finder.bill_address.address1, "Recent Order")

    def test_guest_cannot_look_up_by_email_alone(self):
        Order.objects.create(
            distributor=self.hub, email="jane@example.com",
            bill_address=make_address(), completed_at=timezone.now(),
        )

        finder = AddressFinder("jane@example.com", None, AnonymousUser())
        self.assertIsNone(finder.bill_address)

    def test_email_lookup_allowed_for_matching_customer(self):
        customer = Customer.objects.create(enterprise=self.hub, email="jane@example.com")
        Order.objects.create(
            distributor=self.hub, email="JANE@example.com",
            bill_address=make_address(address1="Guest Order"), completed_at=timezone.now(),
        )

        finder = AddressFinder("jane@example.com", customer, None)
        self.assertEqual(finder.bill_address.address1, "Guest Order")


class CustomerServiceTests(TestCase):
    def setUp(self):
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)

    def test_find_or_create_is_idempotent(self):
        address = make_address()
        first = CustomerService.find_or_create(self.hub, "Jane@Example.com", None, address)
        second = CustomerService.find_or_create(self.hub, "jane@example.com")

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.first_name, "Jane")
        self.assertEqual(Customer.objects.count(), 1)

    def test_save_default_addresses_stores_copies(self):
        customer = CustomerService.find_or_create(self.hub, "jane@example.com")
        bill = make_address(address1="Bill St")

        customer = CustomerService.save_default_addresses(customer, bill_address=bill)

        self.assertEqual(customer.bill_address.address1, "Bill St")
        self.assertNotEqual(customer.bill_address.pk, bill.pk)
        self.assertIsNone(customer.ship_address)
