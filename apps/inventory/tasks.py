import logging

import requests
from celery import shared_task

from .services import StockSyncService

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def sync_linked_catalog(self, catalog_url):
    """
    Background refresh of one linked catalog (cart page, nightly runs).
    """
    try:
        updated = StockSyncService.sync_catalog(catalog_url)
    except requests.RequestException as exc:
        logger.warning("Stock sync for %s failed, retrying: %s", catalog_url, exc)
        raise self.retry(exc=exc)
    except ValueError as exc:
        logger.warning("Skipping malformed catalog %s: %s", catalog_url, exc, extra={"catalog_url": catalog_url})
        return f"{catalog_url}: skipped"

    return f"{catalog_url}: updated {updated} variants"


@shared_task
def sync_all_linked_catalogs():
    """
    MASTER TASK: spawns one task per linked catalog.
    """
    from apps.catalog.models import Variant

    urls = (
        Variant.objects.exclude(external_catalog_url="")
        .values_list("external_catalog_url", flat=True)
        .distinct()
    )
    count = 0
    for url in urls:
        sync_linked_catalog.delay(url)
        count += 1
    return f"Triggered stock sync for {count} catalogs"
