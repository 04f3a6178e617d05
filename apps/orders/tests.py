from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework.exceptions import PermissionDenied

from apps.catalog.models import Product, Variant
from apps.customers.models import Address, Customer
from apps.enterprises.models import Enterprise, ShippingMethod
from apps.utils.exceptions import BusinessLogicException

from .ability import OrderAbility
from .current import SESSION_TOKEN_KEY
from .models import LineItem, Order
from .services import OrderService

User = get_user_model()


class OrderFixtureMixin:
    def setUp(self):
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)
        self.farm = Enterprise.objects.create(name="Farm", is_supplier=True)
        product = Product.objects.create(name="Eggs", supplier=self.farm)
        self.variant = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="dozen", price=Decimal("6.50"), on_hand=5,
        )
        self.order = Order.objects.create(distributor=self.hub, email="guest@example.com")


class OrderModelTests(OrderFixtureMixin, TestCase):
    def test_number_and_token_generated(self):
        self.assertRegex(self.order.number, r"^R\d{9}$")
        self.assertTrue(self.order.token)

    def test_checkout_allowed_requires_line_items(self):
        self.assertFalse(self.order.checkout_allowed)
        OrderService.set_line_item_quantity(self.order, self.variant, 1)
        self.assertTrue(self.order.checkout_allowed)

    def test_insufficient_stock_lines(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 6)
        self.assertEqual(len(self.order.insufficient_stock_lines()), 1)

        self.variant.on_demand = True
        self.variant.save()
        self.assertEqual(self.order.insufficient_stock_lines(), [])

    def test_update_totals_includes_shipping_fee(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 2)
        self.order.shipping_method = ShippingMethod.objects.create(name="Delivery", fee=Decimal("5.00"))
        self.order.update_totals()

        self.assertEqual(self.order.item_total, Decimal("13.00"))
        self.assertEqual(self.order.total, Decimal("18.00"))

    def test_empty(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 2)
        self.order.empty()

        self.order.refresh_from_db()
        self.assertFalse(self.order.line_items.exists())
        self.assertEqual(self.order.total, Decimal("0.00"))

    def test_transient_flags_are_not_persisted(self):
        self.order.checkout_processing = True
        self.order.save()

        reloaded = Order.objects.get(pk=self.order.pk)
        self.assertFalse(reloaded.checkout_processing)


class OrderServiceTests(OrderFixtureMixin, TestCase):
    def test_set_quantity_zero_removes_line_item(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 2)
        OrderService.set_line_item_quantity(self.order, self.variant, 0)
        self.assertFalse(self.order.line_items.exists())

    def test_associate_user(self):
        user = User.objects.create_user(email="shopper@example.com", password="pass1234")
        order = Order.objects.create(distributor=self.hub)

        OrderService.associate_user(order, user)

        order.refresh_from_db()
        self.assertEqual(order.user, user)
        self.assertEqual(order.email, "shopper@example.com")

    def test_associate_user_ignores_guests(self):
        OrderService.associate_user(self.order, AnonymousUser())
        self.assertIsNone(self.order.user_id)

    def test_finalize(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 2)
        self.order.bill_address = Address.objects.create(
            firstname="Guest", lastname="Shopper", address1="2 High St", city="Hobart", zipcode="7000",
        )
        self.order.save()

        OrderService.finalize(self.order)

        self.order.refresh_from_db()
        self.variant.refresh_from_db()
        self.assertTrue(self.order.is_completed)
        self.assertEqual(self.order.state, Order.State.COMPLETE)
        self.assertEqual(self.order.shipment_state, Order.ShipmentState.PENDING)
        self.assertEqual(self.order.payment_state, Order.PaymentState.BALANCE_DUE)
        self.assertEqual(self.variant.on_hand, 3)
        customer = Customer.objects.get(enterprise=self.hub, email="guest@example.com")
        self.assertEqual(self.order.customer, customer)
        self.assertEqual(customer.last_name, "Shopper")

    def test_finalize_twice_fails(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 1)
        OrderService.finalize(self.order)

        with self.assertRaises(BusinessLogicException):
            OrderService.finalize(self.order)

    def test_finalize_rolls_back_on_insufficient_stock(self):
        OrderService.set_line_item_quantity(self.order, self.variant, 10)

        with self.assertRaises(BusinessLogicException):
            OrderService.finalize(self.order)

        self.order.refresh_from_db()
        self.assertFalse(self.order.is_completed)


class OrderAbilityTests(OrderFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass1234")
        self.other = User.objects.create_user(email="other@example.com", password="pass1234")
        self.staff = User.objects.create_user(email="staff@example.com", password="pass1234", is_staff=True)
        self.owned = Order.objects.create(distributor=self.hub, user=self.owner)

    def test_owner_can_edit(self):
        self.assertTrue(OrderAbility(self.owner).can("edit", self.owned))

    def test_other_user_cannot_edit(self):
        self.assertFalse(OrderAbility(self.other).can("edit", self.owned))

    def test_token_grants_access(self):
        self.assertTrue(OrderAbility(self.other).can("edit", self.owned, self.owned.token))
        self.assertFalse(OrderAbility(self.other).can("edit", self.owned, "wrong"))

    def test_guest_needs_token_for_guest_order(self):
        self.assertFalse(OrderAbility(AnonymousUser()).can("edit", self.order))
        self.assertFalse(OrderAbility(AnonymousUser()).can("read", self.order, "wrong"))
        self.assertTrue(OrderAbility(AnonymousUser()).can("edit", self.order, self.order.token))

    def test_guest_cannot_edit_user_order(self):
        self.assertFalse(OrderAbility(AnonymousUser()).can("edit", self.owned))

    def test_signed_in_user_cannot_edit_guest_order_without_token(self):
        self.assertFalse(OrderAbility(self.other).can("edit", self.order))

    def test_staff_can_do_anything(self):
        self.assertTrue(OrderAbility(self.staff).can("edit", self.owned))

    def test_authorize_raises(self):
        with self.assertRaises(PermissionDenied):
            OrderAbility(self.other).authorize("edit", self.owned)


class OrderDetailViewTests(OrderFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass1234")
        self.order.user = self.owner
        self.order.save()

    def test_json_with_session_token(self):
        session = self.client.session
        session[SESSION_TOKEN_KEY] = self.order.token
        session.save()

        response = self.client.get(f"/orders/{self.order.number}/", HTTP_ACCEPT="application/json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["number"], self.order.number)

    def test_html_for_owner(self):
        self.client.force_login(self.owner)
        response = self.client.get(f"/orders/{self.order.number}/")

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, self.order.number)

    def test_stranger_is_forbidden(self):
        stranger = User.objects.create_user(email="stranger@example.com", password="pass1234")
        self.client.force_login(stranger)

        response = self.client.get(f"/orders/{self.order.number}/", HTTP_ACCEPT="application/json")
        self.assertEqual(response.status_code, 403)

    def test_unknown_order_is_404(self):
        response = self.client.get("/orders/R000000000/", HTTP_ACCEPT="application/json")
        self.assertEqual(response.status_code, 404)


class GuestOrderDetailViewTests(OrderFixtureMixin, TestCase):
    def test_guest_without_token_is_forbidden(self):
        response = self.client.get(f"/orders/{self.order.number}/", HTTP_ACCEPT="application/json")

        self.assertEqual(response.status_code, 403)
        self.assertNotIn("guest@example.com", response.content.decode())

    def test_guest_with_other_orders_token_is_forbidden(self):
        other = Order.objects.create(distributor=self.hub, email="someone@example.com")
        session = self.client.session
        session[SESSION_TOKEN_KEY] = other.token
        session.save()

        response = self.client.get(f"/orders/{self.order.number}/", HTTP_ACCEPT="application/json")
        self.assertEqual(response.status_code, 403)

    def test_guest_with_session_token(self):
        session = self.client.session
        session[SESSION_TOKEN_KEY] = self.order.token
        session.save()

        response = self.client.get(f"/orders/{self.order.number}/", HTTP_ACCEPT="application/json")
        self.assertEqual(response.status_code, 200)

    def test_guest_with_order_token_param(self):
        response = self.client.get(
            f"/orders/{self.order.number}/?order_token={self.order.token}", HTTP_ACCEPT="application/json"
        )
        self.assertEqual(response.status_code, 200)
