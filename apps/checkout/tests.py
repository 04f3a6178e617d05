from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.core.cache import cache
from django.test import RequestFactory, TestCase
from django.utils import timezone

from apps.catalog.models import Product, Variant
from apps.customers.models import Address, Customer
from apps.enterprises.models import Enterprise, PaymentMethod, ShippingMethod
from apps.order_cycles.models import OrderCycle
from apps.orders.current import SESSION_ORDER_KEY, SESSION_TOKEN_KEY
from apps.orders.models import LineItem, Order

from .callbacks import ORDER_CYCLE_CLOSED_MESSAGE, CurrentOrderLocker

User = get_user_model()

CHECKOUT_URL = "/checkout/"
JSON = {"HTTP_ACCEPT": "application/json"}


def address_data(**overrides):
    data = {
        "firstname": "Jane",
        "lastname": "Doe",
        "address1": "1 Main St",
        "city": "Melbourne",
        "zipcode": "3000",
    }
    data.update(overrides)
    return data


class CheckoutFixtureMixin:
    def setUp(self):
        self.hub_address = Address.objects.create(**address_data(firstname="Hub", lastname="Pickup", address1="9 Hub Rd"))
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True, address=self.hub_address)
        self.farm = Enterprise.objects.create(name="Farm", is_supplier=True)

        self.delivery = ShippingMethod.objects.create(name="Delivery", fee=Decimal("5.00"))
        self.pickup = ShippingMethod.objects.create(name="pickup", requires_ship_address=False)
        self.delivery.distributors.add(self.hub)
        self.pickup.distributors.add(self.hub)
        self.cash = PaymentMethod.objects.create(name="Cash on pickup")
        self.cash.distributors.add(self.hub)

        product = Product.objects.create(name="Bread", supplier=self.farm)
        self.variant = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="loaf", price=Decimal("4.00"), on_hand=10,
        )

        now = timezone.now()
        self.order_cycle = OrderCycle.objects.create(
            name="This week", coordinator=self.hub,
            orders_open_at=now - timedelta(days=1), orders_close_at=now + timedelta(days=1),
        )
        self.order_cycle.distributors.add(self.hub)
        self.order_cycle.variants.add(self.variant)

        self.order = Order.objects.create(
            distributor=self.hub, order_cycle=self.order_cycle, email="jane@example.com",
        )
        LineItem.objects.create(order=self.order, variant=self.variant, quantity=2, price=self.variant.price)
        self.use_order(self.order)

    def use_order(self, order, token=True):
        session = self.client.session
        session[SESSION_ORDER_KEY] = str(order.pk)
        if token:
            session[SESSION_TOKEN_KEY] = order.token
        else:
            session.pop(SESSION_TOKEN_KEY, None)
        session.save()

    def set_state(self, state):
        self.order.state = state
        self.order.save(update_fields=["state"])

    def details_payload(self, **overrides):
        data = {
            "email": "jane@example.com",
            "bill_address": address_data(),
            "ship_address": address_data(address1="2 Side St"),
            "shipping_method_id": str(self.delivery.pk),
        }
        data.update(overrides)
        return data

    def post_step(self, step, data=None):
        return self.client.post(
            f"{CHECKOUT_URL}?step={step}", data or {}, content_type="application/json", **JSON
        )


class CheckoutGuardTests(CheckoutFixtureMixin, TestCase):
    def test_no_order_redirects_home(self):
        session = self.client.session
        session.pop(SESSION_ORDER_KEY)
        session.save()

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/", fetch_redirect_response=False)

    def test_no_distributor_redirects_home(self):
        order = Order.objects.create()
        self.use_order(order)

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/", fetch_redirect_response=False)

    def test_no_order_cycle_redirects_to_shop(self):
        self.order.order_cycle = None
        self.order.save()

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/shop/", fetch_redirect_response=False)

    def test_closed_order_cycle_empties_order(self):
        self.order_cycle.orders_close_at = timezone.now() - timedelta(minutes=1)
        self.order_cycle.save()

        with self.assertLogs("apps.checkout.callbacks", level="WARNING"):
            response = self.client.get(CHECKOUT_URL)

        self.assertRedirects(response, "/shop/", fetch_redirect_response=False)
        self.order.refresh_from_db()
        self.assertIsNone(self.order.order_cycle)
        self.assertFalse(self.order.line_items.exists())
        flashed = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn(ORDER_CYCLE_CLOSED_MESSAGE, flashed)

    def test_hub_not_ready_empties_order(self):
        self.cash.active = False
        self.cash.save()

        response = self.client.get(CHECKOUT_URL)

        self.assertRedirects(response, "/shop/", fetch_redirect_response=False)
        self.assertFalse(self.order.line_items.exists())
        self.assertTrue(list(get_messages(response.wsgi_request)))

    def test_empty_order_redirects_to_shop(self):
        self.order.line_items.all().delete()

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/shop/", fetch_redirect_response=False)

    def test_completed_order_redirects_to_shop(self):
        self.order.completed_at = timezone.now()
        self.order.save()

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/shop/", fetch_redirect_response=False)

    def test_insufficient_stock_redirects_to_cart(self):
        self.variant.on_hand = 1
        self.variant.save()

        response = self.client.get(f"{CHECKOUT_URL}?step=details")
        self.assertRedirects(response, "/cart/", fetch_redirect_response=False)

    def test_insufficient_stock_json_answers_cart_path(self):
        self.variant.on_hand = 1
        self.variant.save()

        response = self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"path": "/cart/"})

    def test_variant_not_distributed_redirects_to_cart(self):
        self.order_cycle.variants.remove(self.variant)

        response = self.client.get(f"{CHECKOUT_URL}?step=details")
        self.assertRedirects(response, "/cart/", fetch_redirect_response=False)

    def test_other_users_order_is_forbidden(self):
        owner = User.objects.create_user(email="owner@example.com", password="pass1234")
        self.order.user = owner
        self.order.save()
        self.use_order(self.order, token=False)

        response = self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)
        self.assertEqual(response.status_code, 403)

    def test_access_token_grants_access(self):
        owner = User.objects.create_user(email="owner@example.com", password="pass1234")
        self.order.user = owner
        self.order.save()

        response = self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)
        self.assertEqual(response.status_code, 200)


class CheckoutEditTests(CheckoutFixtureMixin, TestCase):
    def test_without_step_redirects_to_details_and_starts_checkout(self):
        response = self.client.get(CHECKOUT_URL)

        self.assertRedirects(response, "/checkout/?step=details", fetch_redirect_response=False)
        self.order.refresh_from_db()
        self.assertEqual(self.order.state, Order.State.ADDRESS)

    def test_step_ahead_of_state_redirects_back(self):
        response = self.client.get(f"{CHECKOUT_URL}?step=summary")
        self.assertRedirects(response, "/checkout/?step=details", fetch_redirect_response=False)

    def test_confirmation_state_redirects_to_summary(self):
        self.set_state(Order.State.CONFIRMATION)

        response = self.client.get(CHECKOUT_URL)
        self.assertRedirects(response, "/checkout/?step=summary", fetch_redirect_response=False)

    def test_details_lists_shipping_methods_case_insensitively(self):
        ShippingMethod.objects.create(name="Zippy courier").distributors.add(self.hub)
        ShippingMethod.objects.create(name="bike").distributors.add(self.hub)

        response = self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)

        self.assertEqual(response.status_code, 200)
        names = [m["name"] for m in response.json()["shipping_methods"]]
        self.assertEqual(names, ["bike", "Delivery", "pickup", "Zippy courier"])

    def test_shipping_methods_only_loaded_for_details(self):
        self.set_state(Order.State.PAYMENT)

        response = self.client.get(f"{CHECKOUT_URL}?step=payment", **JSON)

        self.assertEqual(response.json()["shipping_methods"], [])
        self.assertEqual(response.json()["payment_methods"][0]["name"], "Cash on pickup")

    def test_html_renders(self):
        response = self.client.get(f"{CHECKOUT_URL}?step=details")

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Checkout: details")

    def test_saved_addresses_are_loaded_from_customer(self):
        customer = Customer.objects.create(
            enterprise=self.hub, email="jane@example.com",
            bill_address=Address.objects.create(**address_data(address1="Saved Bill")),
        )
        self.order.customer = customer
        self.order.save()

        self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)

        self.order.refresh_from_db()
        self.assertEqual(self.order.bill_address.address1, "Saved Bill")
        self.assertNotEqual(self.order.bill_address_id, customer.bill_address_id)
        self.assertIsNone(self.order.ship_address)

    def test_signed_in_user_is_associated(self):
        user = User.objects.create_user(email="jane@example.com", password="pass1234")
        self.client.force_login(user)
        self.use_order(self.order)

        response = self.client.get(f"{CHECKOUT_URL}?step=details", **JSON)

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.user, user)


class CheckoutUpdateTests(CheckoutFixtureMixin, TestCase):
    def test_details_moves_to_payment(self):
        response = self.post_step("details", self.details_payload(special_instructions="Leave at door"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["step"], "payment")
        self.order.refresh_from_db()
        self.assertEqual(self.order.state, Order.State.PAYMENT)
        self.assertEqual(self.order.ship_address.address1, "2 Side St")
        self.assertEqual(self.order.shipping_method, self.delivery)
        self.assertEqual(self.order.total, Decimal("13.00"))

    def test_details_html_redirects_to_payment(self):
        response = self.client.post(
            f"{CHECKOUT_URL}?step=details", self.details_payload(), content_type="application/json"
        )
        self.assertRedirects(response, "/checkout/?step=payment", fetch_redirect_response=False)

    def test_pickup_uses_hub_address(self):
        payload = self.details_payload(shipping_method_id=str(self.pickup.pk))
        del payload["ship_address"]

        response = self.post_step("details", payload)

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.ship_address.address1, "9 Hub Rd")
        self.assertNotEqual(self.order.ship_address_id, self.hub_address.pk)

    def test_delivery_requires_ship_address(self):
        payload = self.details_payload()
        del payload["ship_address"]

        response = self.post_step("details", payload)

        self.assertEqual(response.status_code, 422)
        self.assertIn("ship_address", response.json()["errors"])

    def test_invalid_details_are_422(self):
        response = self.post_step("details", self.details_payload(email="not-an-email", bill_address={}))

        self.assertEqual(response.status_code, 422)
        errors = response.json()["errors"]
        self.assertIn("email", errors)
        self.assertIn("bill_address", errors)

    def test_foreign_shipping_method_rejected(self):
        other = ShippingMethod.objects.create(name="Elsewhere")

        response = self.post_step("details", self.details_payload(shipping_method_id=str(other.pk)))

        self.assertEqual(response.status_code, 422)
        self.assertIn("shipping_method_id", response.json()["errors"])

    def test_save_addresses_as_customer_defaults(self):
        response = self.post_step(
            "details", self.details_payload(save_bill_address=True, save_ship_address=True)
        )

        self.assertEqual(response.status_code, 200)
        customer = Customer.objects.get(enterprise=self.hub, email="jane@example.com")
        self.assertEqual(customer.bill_address.address1, "1 Main St")
        self.assertEqual(customer.ship_address.address1, "2 Side St")
        self.order.refresh_from_db()
        self.assertEqual(self.order.customer, customer)

    def test_payment_before_details_is_rejected(self):
        response = self.post_step("payment", {"payment_method_id": str(self.cash.pk)})
        self.assertEqual(response.status_code, 422)

    def test_unknown_step_is_422(self):
        response = self.post_step("shipping")
        self.assertEqual(response.status_code, 422)

    def test_payment_moves_to_confirmation(self):
        self.set_state(Order.State.PAYMENT)

        response = self.post_step("payment", {"payment_method_id": str(self.cash.pk)})

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.state, Order.State.CONFIRMATION)
        self.assertEqual(self.order.payment_method, self.cash)
        self.assertEqual(self.order.item_total, Decimal("8.00"))

    def test_inactive_payment_method_rejected(self):
        self.set_state(Order.State.PAYMENT)
        card = PaymentMethod.objects.create(name="Card", active=False)
        card.distributors.add(self.hub)

        response = self.post_step("payment", {"payment_method_id": str(card.pk)})
        self.assertEqual(response.status_code, 422)

    @patch("apps.checkout.callbacks.StockSyncService.sync_linked_catalogs_now")
    def test_stock_not_synced_before_confirmation(self, mock_sync):
        self.set_state(Order.State.PAYMENT)
        self.post_step("payment", {"payment_method_id": str(self.cash.pk)})
        mock_sync.assert_not_called()

    @patch("apps.checkout.callbacks.StockSyncService.sync_linked_catalogs_now")
    def test_stock_not_synced_on_edit(self, mock_sync):
        self.set_state(Order.State.CONFIRMATION)
        self.client.get(f"{CHECKOUT_URL}?step=summary", **JSON)
        mock_sync.assert_not_called()

    @patch("apps.checkout.callbacks.StockSyncService.sync_linked_catalogs_now")
    def test_summary_completes_order(self, mock_sync):
        self.set_state(Order.State.CONFIRMATION)

        response = self.post_step("summary")

        mock_sync.assert_called_once()
        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(response.json()["path"], f"/orders/{self.order.number}/")
        self.assertEqual(self.order.state, Order.State.COMPLETE)
        self.assertEqual(self.order.shipment_state, Order.ShipmentState.PENDING)
        self.assertEqual(self.order.payment_state, Order.PaymentState.BALANCE_DUE)
        self.assertIsNotNone(self.order.completed_at)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.on_hand, 8)
        self.assertNotIn(SESSION_ORDER_KEY, self.client.session)
        self.assertEqual(self.client.session[SESSION_TOKEN_KEY], self.order.token)

    @patch("apps.checkout.callbacks.StockSyncService.sync_linked_catalogs_now")
    def test_summary_html_redirects_to_order_page(self, mock_sync):
        self.set_state(Order.State.CONFIRMATION)

        response = self.client.post(f"{CHECKOUT_URL}?step=summary")

        self.order.refresh_from_db()
        self.assertRedirects(response, f"/orders/{self.order.number}/", fetch_redirect_response=False)

    def test_stock_sync_sold_out_sends_shopper_back_to_cart(self):
        self.set_state(Order.State.CONFIRMATION)

        def sell_out(order):
            Variant.objects.filter(pk=self.variant.pk).update(on_hand=0)

        with patch("apps.checkout.callbacks.StockSyncService.sync_linked_catalogs_now", side_effect=sell_out):
            response = self.post_step("summary")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"path": "/cart/"})
        self.order.refresh_from_db()
        self.assertFalse(self.order.is_completed)

    @patch("apps.inventory.services.requests.get")
    def test_failed_stock_sync_does_not_block_completion(self, mock_get):
        import requests

        self.variant.external_catalog_url = "https://farm.example.com/catalog"
        self.variant.external_product_id = "bread"
        self.variant.save()
        mock_get.side_effect = requests.ConnectionError("down")
        self.set_state(Order.State.CONFIRMATION)

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            response = self.post_step("summary")

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_completed)

    @patch("apps.inventory.services.requests.get")
    def test_malformed_catalog_does_not_block_completion(self, mock_get):
        cache.clear()
        self.variant.external_catalog_url = "https://farm.example.com/catalog"
        self.variant.external_product_id = "bread"
        self.variant.save()
        response_stub = MagicMock()
        response_stub.raise_for_status.return_value = None
        response_stub.json.return_value = {"items": [{"stock": 3}, "bread"]}
        mock_get.return_value = response_stub
        self.set_state(Order.State.CONFIRMATION)

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            response = self.post_step("summary")

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_completed)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.on_hand, 8)


class FullCheckoutFlowTests(CheckoutFixtureMixin, TestCase):
    def test_guest_checks_out_end_to_end(self):
        self.assertRedirects(
            self.client.get(CHECKOUT_URL), "/checkout/?step=details", fetch_redirect_response=False
        )
        self.assertEqual(self.post_step("details", self.details_payload()).status_code, 200)
        self.assertEqual(
            self.post_step("payment", {"payment_method_id": str(self.cash.pk)}).status_code, 200
        )
        response = self.post_step("summary")

        self.assertEqual(response.status_code, 200)
        order = response.json()["order"]
        self.assertEqual(order["state"], "complete")
        self.assertEqual(order["total"], "13.00")

        detail = self.client.get(response.json()["path"], **JSON)
        self.assertEqual(detail.status_code, 200)


class CurrentOrderLockerTests(CheckoutFixtureMixin, TestCase):
    def test_binds_fresh_locked_order(self):
        request = RequestFactory().get("/")
        request.session = {SESSION_ORDER_KEY: str(self.order.pk)}
        request._current_order = self.order

        with CurrentOrderLocker(request) as locked:
            self.assertEqual(locked.pk, self.order.pk)
            self.assertIsNot(locked, self.order)
            self.assertIs(request._current_order, locked)

    def test_no_order(self):
        request = RequestFactory().get("/")
        request.session = {}

        with CurrentOrderLocker(request) as locked:
            self.assertIsNone(locked)
