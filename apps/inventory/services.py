import logging
from typing import Dict, Optional

import requests
from django.conf import settings
from django.db import transaction
from django.db.models import F

from apps.catalog.models import Variant
from apps.utils.exceptions import BusinessLogicException, InsufficientStock
from apps.utils.resilience import CircuitBreaker

logger = logging.getLogger(__name__)

catalog_breaker = CircuitBreaker(
    service_name="linked-catalogs",
    failure_threshold=getattr(settings, "STOCK_SYNC_FAILURE_THRESHOLD", 5),
    recovery_timeout=getattr(settings, "STOCK_SYNC_RECOVERY_TIMEOUT", 60),
)


class InventoryService:
    """
    ALL stock changes for orders pass through here.
    """

    @staticmethod
    @transaction.atomic
    def deduct_for_order(order):
        """
        Locks the order's variants in deterministic (pk) order to prevent
        deadlocks, validates, then decrements on_hand.
        """
        quantities = {}
        for line_item in order.line_items.all():
            quantities[line_item.variant_id] = quantities.get(line_item.variant_id, 0) + line_item.quantity

        variants = (
            Variant.all_objects
            .select_for_update()
            .filter(pk__in=quantities.keys())
            .order_by("pk")
        )
        locked = list(variants)

        short = [v for v in locked if not v.can_supply(quantities[v.pk])]
        if short:
            variant = short[0]
            raise InsufficientStock(
                f"Insufficient stock for {variant}. "
                f"Required: {quantities[variant.pk]}, Available: {variant.on_hand}",
                variant_ids=[v.pk for v in short],
            )

        for variant in locked:
            if variant.on_demand:
                continue
            variant.on_hand = F("on_hand") - quantities[variant.pk]
            variant.save(update_fields=["on_hand", "updated_at"])

        logger.info("Deducted stock for order %s (%s variants)", order.number, len(locked))


class StockSyncService:
    """
    Variants linked to an external catalog take their stock from it.

    Catalog payload:
        {"items": [{"id": "<external_product_id>", "stock": 12 | null}, ...]}

    A numeric stock sets on_hand, null means on demand, and a product
    missing from the catalog is treated as sold out.
    """

    @staticmethod
    def linked_catalog_urls(order):
        urls = (
            Variant.all_objects
            .filter(line_items__order=order)
            .exclude(external_catalog_url="")
            .exclude(external_product_id="")
            .values_list("external_catalog_url", flat=True)
        )
        return sorted(set(urls))

    @staticmethod
    def sync_linked_catalogs_now(order):
        """
        Refreshes stock before checkout confirms. Failures are logged and
        the checkout carries on with the stock it already has.
        """
        for url in StockSyncService.linked_catalog_urls(order):
            try:
                StockSyncService.sync_catalog(url)
            except (requests.RequestException, BusinessLogicException, ValueError) as e:
                logger.warning(
                    "Stock sync failed for %s (order %s): %s", url, order.number, e,
                    extra={"catalog_url": url, "order_number": order.number},
                )

    @staticmethod
    def sync_linked_catalogs_later(order):
        from .tasks import sync_linked_catalog

        for url in StockSyncService.linked_catalog_urls(order):
            sync_linked_catalog.delay(url)

    @staticmethod
    def sync_catalog(catalog_url: str) -> int:
        stock_levels = StockSyncService.fetch_stock_levels(catalog_url)
        return StockSyncService.apply_stock_levels(catalog_url, stock_levels)

    @staticmethod
    @catalog_breaker
    def fetch_stock_levels(catalog_url: str) -> Dict[str, Optional[int]]:
        response = requests.get(
            catalog_url,
            headers={"Accept": "application/json"},
            timeout=getattr(settings, "STOCK_SYNC_TIMEOUT", 10),
        )
        response.raise_for_status()

        payload = response.json()
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ValueError(f"Malformed catalog payload from {catalog_url}")

        levels = {}
        for item in items:
            levels.update(StockSyncService._parse_item(catalog_url, item))
        return levels

    @staticmethod
    def _parse_item(catalog_url, item):
        # Any bad item rejects the whole payload
        if not isinstance(item, dict) or item.get("id") in (None, ""):
            raise ValueError(f"Catalog item without an id from {catalog_url}: {item!r}")

        stock = item.get("stock")
        if stock is None:
            return {str(item["id"]): None}
        if isinstance(stock, bool):
            raise ValueError(f"Bad stock for {item['id']} from {catalog_url}: {stock!r}")
        try:
            return {str(item["id"]): int(stock)}
        except (TypeError, ValueError):
            raise ValueError(f"Bad stock for {item['id']} from {catalog_url}: {stock!r}") from None

    @staticmethod
    @transaction.atomic
    def apply_stock_levels(catalog_url: str, stock_levels: Dict[str, Optional[int]]) -> int:
        variants = (
            Variant.objects
            .select_for_update()
            .filter(external_catalog_url=catalog_url)
            .exclude(external_product_id="")
            .order_by("pk")
        )

        updated = 0
        for variant in variants:
            if variant.external_product_id not in stock_levels:
                on_hand, on_demand = 0, False
            elif stock_levels[variant.external_product_id] is None:
                on_hand, on_demand = variant.on_hand, True
            else:
                on_hand, on_demand = max(0, stock_levels[variant.external_product_id]), False

            if (on_hand, on_demand) == (variant.on_hand, variant.on_demand):
                continue

            variant.on_hand = on_hand
            variant.on_demand = on_demand
            variant.save(update_fields=["on_hand", "on_demand", "updated_at"])
            updated += 1

        logger.info("Synced %s variants from %s", updated, catalog_url, extra={"catalog_url": catalog_url})
        return updated
