from unittest.mock import MagicMock, patch

import requests
from django.core.cache import cache
from django.test import TestCase

from apps.catalog.models import Product, Variant
from apps.enterprises.models import Enterprise
from apps.inventory.services import InventoryService, StockSyncService, catalog_breaker
from apps.orders.models import LineItem, Order
from apps.utils.exceptions import BusinessLogicException

CATALOG_URL = "https://farm.example.com/api/catalog"


def _catalog_response(items):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"items": items}
    return response


class InventoryFixtureMixin:
    def setUp(self):
        cache.clear()
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)
        self.farm = Enterprise.objects.create(name="Farm", is_supplier=True)
        product = Product.objects.create(name="Carrots", supplier=self.farm)
        self.linked = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="1kg", price=3,
            on_hand=10, external_catalog_url=CATALOG_URL, external_product_id="carrots-1kg",
        )
        self.linked_gone = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="5kg", price=12,
            on_hand=4, external_catalog_url=CATALOG_URL, external_product_id="carrots-5kg",
        )
        self.local = Variant.objects.create(
            product=product, supplier=self.farm, unit_description="bunch", price=2, on_hand=7,
        )
        self.order = Order.objects.create(distributor=self.hub, email="shopper@example.com")
        LineItem.objects.create(order=self.order, variant=self.linked, quantity=2, price=3)
        LineItem.objects.create(order=self.order, variant=self.local, quantity=1, price=2)


class DeductForOrderTests(InventoryFixtureMixin, TestCase):
    def test_deducts_on_hand(self):
        InventoryService.deduct_for_order(self.order)

        self.linked.refresh_from_db()
        self.local.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 8)
        self.assertEqual(self.local.on_hand, 6)

    def test_on_demand_variants_are_not_deducted(self):
        self.local.on_demand = True
        self.local.on_hand = 0
        self.local.save()

        InventoryService.deduct_for_order(self.order)

        self.local.refresh_from_db()
        self.assertEqual(self.local.on_hand, 0)

    def test_insufficient_stock_raises_and_changes_nothing(self):
        self.local.on_hand = 0
        self.local.save()

        with self.assertRaises(BusinessLogicException) as ctx:
            InventoryService.deduct_for_order(self.order)

        self.assertEqual(ctx.exception.code, "insufficient_stock")
        self.assertEqual(ctx.exception.variant_ids, [self.local.pk])
        self.linked.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 10)

    def test_soft_deleted_variant_is_still_deducted(self):
        self.local.delete()
        InventoryService.deduct_for_order(self.order)

        local = Variant.all_objects.get(pk=self.local.pk)
        self.assertEqual(local.on_hand, 6)


class StockSyncTests(InventoryFixtureMixin, TestCase):
    def test_linked_catalog_urls_only_lists_linked_variants(self):
        self.assertEqual(StockSyncService.linked_catalog_urls(self.order), [CATALOG_URL])

    @patch("apps.inventory.services.requests.get")
    def test_sync_now_updates_linked_variants(self, mock_get):
        mock_get.return_value = _catalog_response([{"id": "carrots-1kg", "stock": 1}])

        StockSyncService.sync_linked_catalogs_now(self.order)

        mock_get.assert_called_once()
        self.linked.refresh_from_db()
        self.linked_gone.refresh_from_db()
        self.local.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 1)
        # Missing from the catalog: sold out
        self.assertEqual(self.linked_gone.on_hand, 0)
        # Not linked: untouched
        self.assertEqual(self.local.on_hand, 7)

    @patch("apps.inventory.services.requests.get")
    def test_null_stock_means_on_demand(self, mock_get):
        mock_get.return_value = _catalog_response([
            {"id": "carrots-1kg", "stock": None},
            {"id": "carrots-5kg", "stock": 3},
        ])

        updated = StockSyncService.sync_catalog(CATALOG_URL)

        self.assertEqual(updated, 2)
        self.linked.refresh_from_db()
        self.assertTrue(self.linked.on_demand)
        self.assertEqual(self.linked.on_hand, 10)

    @patch("apps.inventory.services.requests.get")
    def test_sync_now_swallows_http_errors(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("catalog down")

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            StockSyncService.sync_linked_catalogs_now(self.order)

        self.linked.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 10)

    @patch("apps.inventory.services.requests.get")
    def test_malformed_payload_is_logged(self, mock_get):
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = ["not", "a", "catalog"]
        mock_get.return_value = response

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            StockSyncService.sync_linked_catalogs_now(self.order)

    @patch("apps.inventory.services.requests.get")
    def test_item_without_id_skips_catalog(self, mock_get):
        mock_get.return_value = _catalog_response([{"stock": 3}, {"id": "carrots-1kg", "stock": 1}])

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            StockSyncService.sync_linked_catalogs_now(self.order)

        self.linked.refresh_from_db()
        self.linked_gone.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 10)
        self.assertEqual(self.linked_gone.on_hand, 4)

    @patch("apps.inventory.services.requests.get")
    def test_non_dict_item_skips_catalog(self, mock_get):
        mock_get.return_value = _catalog_response(["carrots-1kg"])

        with self.assertLogs("apps.inventory.services", level="WARNING"):
            StockSyncService.sync_linked_catalogs_now(self.order)

        self.linked.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 10)

    @patch("apps.inventory.services.requests.get")
    def test_non_numeric_stock_is_malformed(self, mock_get):
        mock_get.return_value = _catalog_response([{"id": "carrots-1kg", "stock": "lots"}])

        with self.assertRaises(ValueError):
            StockSyncService.fetch_stock_levels(CATALOG_URL)

    @patch("apps.inventory.services.requests.get")
    def test_breaker_opens_after_repeated_failures(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")

        for _ in range(catalog_breaker.failure_threshold):
            with self.assertRaises(requests.Timeout):
                StockSyncService.fetch_stock_levels(CATALOG_URL)

        with self.assertRaises(BusinessLogicException):
            StockSyncService.fetch_stock_levels(CATALOG_URL)
        self.assertEqual(mock_get.call_count, catalog_breaker.failure_threshold)

    @patch("apps.inventory.tasks.sync_linked_catalog.delay")
    def test_sync_later_enqueues_one_task_per_catalog(self, mock_delay):
        StockSyncService.sync_linked_catalogs_later(self.order)
        mock_delay.assert_called_once_with(CATALOG_URL)


class StockSyncTaskTests(InventoryFixtureMixin, TestCase):
    @patch("apps.inventory.services.requests.get")
    def test_task_runs_sync(self, mock_get):
        from apps.inventory.tasks import sync_linked_catalog

        mock_get.return_value = _catalog_response([
            {"id": "carrots-1kg", "stock": 5},
            {"id": "carrots-5kg", "stock": 4},
        ])
        result = sync_linked_catalog.apply(args=[CATALOG_URL]).get()

        self.assertIn("updated 1 variants", result)
        self.linked.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 5)

    @patch("apps.inventory.tasks.sync_linked_catalog.delay")
    def test_master_task_fans_out(self, mock_delay):
        from apps.inventory.tasks import sync_all_linked_catalogs

        result = sync_all_linked_catalogs()

        mock_delay.assert_called_once_with(CATALOG_URL)
        self.assertIn("1 catalogs", result)

    @patch("apps.inventory.services.requests.get")
    def test_task_skips_malformed_catalog(self, mock_get):
        from apps.inventory.tasks import sync_linked_catalog

        mock_get.return_value = _catalog_response([{"stock": 3}])

        with self.assertLogs("apps.inventory.tasks", level="WARNING"):
            result = sync_linked_catalog.apply(args=[CATALOG_URL]).get()

        self.assertIn("skipped", result)
        self.linked.refresh_from_db()
        self.assertEqual(self.linked.on_hand, 10)
