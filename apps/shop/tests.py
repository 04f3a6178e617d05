from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from apps.catalog.models import Product, Variant
from apps.enterprises.models import Enterprise
from apps.order_cycles.models import OrderCycle
from apps.orders.current import SESSION_ORDER_KEY, SESSION_TOKEN_KEY
from apps.orders.models import Order

JSON = {"HTTP_ACCEPT": "application/json"}


class ShopFixtureMixin:
    def setUp(self):
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)
        self.farm = Enterprise.objects.create(name="Farm", is_supplier=True)
        product = Product.objects.create(name="Kale", supplier=self.farm)
        self.variant = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="bunch", price=Decimal("3.00"), on_hand=5,
            external_catalog_url="https://farm.example.com/catalog", external_product_id="kale",
        )
        self.off_cycle = Variant.objects.create(product=product, supplier=self.farm, unit_description="box")

        now = timezone.now()
        self.order_cycle = OrderCycle.objects.create(
            name="This week", coordinator=self.hub,
            orders_open_at=now - timedelta(days=1), orders_close_at=now + timedelta(days=2),
        )
        self.order_cycle.distributors.add(self.hub)
        self.order_cycle.variants.add(self.variant)

    def choose_order_cycle(self):
        return self.client.post(
            "/shop/order_cycle/",
            {"distributor_id": str(self.hub.pk), "order_cycle_id": str(self.order_cycle.pk)},
            content_type="application/json",
            **JSON,
        )

    def populate(self, variants):
        return self.client.post(
            "/cart/populate/", {"variants": variants}, content_type="application/json", **JSON
        )


class ShopTests(ShopFixtureMixin, TestCase):
    def test_home_lists_distributors(self):
        response = self.client.get("/", **JSON)
        self.assertEqual([d["name"] for d in response.json()["distributors"]], ["Hub"])

    def test_choosing_order_cycle_starts_order(self):
        response = self.choose_order_cycle()

        self.assertEqual(response.status_code, 200)
        order = Order.objects.get(pk=self.client.session[SESSION_ORDER_KEY])
        self.assertEqual(order.distributor, self.hub)
        self.assertEqual(order.order_cycle, self.order_cycle)
        self.assertEqual(self.client.session[SESSION_TOKEN_KEY], order.token)

    def test_closed_order_cycle_cannot_be_chosen(self):
        self.order_cycle.orders_close_at = timezone.now() - timedelta(hours=1)
        self.order_cycle.save()

        response = self.choose_order_cycle()
        self.assertEqual(response.status_code, 422)

    def test_shop_lists_distributed_variants(self):
        self.choose_order_cycle()

        response = self.client.get("/shop/", **JSON)

        self.assertEqual([v["id"] for v in response.json()["variants"]], [str(self.variant.pk)])

    def test_shop_html(self):
        self.choose_order_cycle()
        response = self.client.get("/shop/")
        self.assertContains(response, "Kale")


class CartTests(ShopFixtureMixin, TestCase):
    def test_populate_sets_quantities(self):
        self.choose_order_cycle()

        response = self.populate({str(self.variant.pk): 2})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["line_items"][0]["quantity"], 2)
        self.assertEqual(response.json()["order"]["item_total"], "6.00")

    def test_populate_rejects_variants_outside_order_cycle(self):
        self.choose_order_cycle()

        response = self.populate({str(self.off_cycle.pk): 1})

        self.assertEqual(response.status_code, 422)
        self.assertIn(str(self.off_cycle.pk), response.json()["variants"])

    def test_populate_requires_order_cycle(self):
        response = self.populate({str(self.variant.pk): 1})
        self.assertEqual(response.status_code, 422)

    @patch("apps.inventory.tasks.sync_linked_catalog.delay")
    def test_cart_page_syncs_linked_catalogs_later(self, mock_delay):
        self.choose_order_cycle()
        self.populate({str(self.variant.pk): 1})

        response = self.client.get("/cart/", **JSON)

        self.assertEqual(response.status_code, 200)
        mock_delay.assert_called_once_with("https://farm.example.com/catalog")

    @patch("apps.inventory.tasks.sync_linked_catalog.delay")
    def test_empty_cart_does_not_sync(self, mock_delay):
        response = self.client.get("/cart/", **JSON)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["order"])
        mock_delay.assert_not_called()
