import csv
import os
from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.catalog.models import Product, Variant
from apps.enterprises.models import Enterprise


class Command(BaseCommand):
    help = "Import products and variants from CSV"

    def add_arguments(self, parser):
        parser.add_argument("file_path", type=str, help="Path to CSV file")

    def handle(self, *args, **kwargs):
        """
        Columns: supplier, product, unit_description, sku, price, on_hand,
        weight, temperature_controlled. Rows are matched on supplier + sku.
        """
        file_path = kwargs["file_path"]
        if not os.path.exists(file_path):
            self.stdout.write(self.style.ERROR(f"File not found: {file_path}"))
            return

        count = 0
        skipped = 0
        with open(file_path, "r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            with transaction.atomic():
                for row in reader:
                    supplier_name = row.get("supplier", "").strip()
                    product_name = row.get("product", "").strip()
                    sku = row.get("sku", "").strip()
                    if not (supplier_name and product_name and sku):
                        skipped += 1
                        continue

                    try:
                        price = Decimal(row.get("price") or "0")
                        weight = Decimal(row["weight"]) if row.get("weight") else None
                    except InvalidOperation:
                        skipped += 1
                        continue

                    supplier, _ = Enterprise.objects.get_or_create(
                        name=supplier_name, defaults={"is_supplier": True}
                    )
                    product, _ = Product.objects.get_or_create(name=product_name, supplier=supplier)

                    Variant.objects.update_or_create(
                        supplier=supplier,
                        sku=sku,
                        defaults={
                            "product": product,
                            "unit_description": row.get("unit_description", "").strip(),
                            "price": price,
                            "on_hand": int(row.get("on_hand") or 0),
                            "weight": weight,
                            "temperature_controlled": row.get("temperature_controlled", "").strip().lower()
                            in ("1", "true", "yes"),
                        },
                    )
                    count += 1

        self.stdout.write(self.style.SUCCESS(f"Successfully imported {count} variants ({skipped} skipped)."))
