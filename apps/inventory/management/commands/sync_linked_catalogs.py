from django.core.management.base import BaseCommand

from apps.catalog.models import Variant
from apps.inventory.services import StockSyncService


class Command(BaseCommand):
    help = "Pulls stock levels from every linked external catalog"

    def add_arguments(self, parser):
        parser.add_argument("--url", help="Only sync this catalog URL")

    def handle(self, *args, **options):
        if options.get("url"):
            urls = [options["url"]]
        else:
            urls = sorted(set(
                Variant.objects.exclude(external_catalog_url="")
                .values_list("external_catalog_url", flat=True)
            ))

        self.stdout.write(f"Syncing {len(urls)} linked catalogs...")
        total = 0
        for url in urls:
            try:
                updated = StockSyncService.sync_catalog(url)
            except Exception as e:
                self.stdout.write(self.style.WARNING(f"FAILED {url}: {e}"))
                continue
            total += updated
            self.stdout.write(f"{url}: {updated} variants updated")

        self.stdout.write(self.style.SUCCESS(f"Stock sync complete. Updated {total} variants."))
