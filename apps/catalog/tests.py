# apps/catalog/tests.py
import os
import tempfile
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.enterprises.models import Enterprise

from .models import Product, Variant


class VariantSoftDeleteTests(TestCase):
    def setUp(self):
        self.farm = Enterprise.objects.create(name="Farm", is_supplier=True)
        self.product = Product.objects.create(name="Apples", supplier=self.farm)
        self.variant = Variant.objects.create(
            product=self.product, supplier=self.farm, unit_description="1kg", on_hand=5,
        )

    def test_delete_hides_variant_from_default_manager(self):
        self.variant.delete()

        self.assertFalse(Variant.objects.filter(pk=self.variant.pk).exists())
        deleted = Variant.all_objects.get(pk=self.variant.pk)
        self.assertTrue(deleted.is_deleted)

    def test_queryset_delete_is_soft(self):
        Variant.objects.filter(product=self.product).delete()

        self.assertEqual(Variant.objects.count(), 0)
        self.assertEqual(Variant.all_objects.count(), 1)

    def test_restore(self):
        self.variant.delete()
        self.variant.restore()

        self.assertTrue(Variant.objects.filter(pk=self.variant.pk).exists())

    def test_full_name(self):
        self.assertEqual(self.variant.full_name, "1kg")
        self.variant.display_name = "Pink Lady"
        self.assertEqual(self.variant.full_name, "Pink Lady (1kg)")

    def test_can_supply(self):
        self.assertTrue(self.variant.can_supply(5))
        self.assertFalse(self.variant.can_supply(6))
        self.variant.on_demand = True
        self.assertTrue(self.variant.can_supply(1000))


class VariantAPITests(APITestCase):
    def setUp(self):
        farm = Enterprise.objects.create(name="Farm", is_supplier=True)
        product = Product.objects.create(name="Apples", supplier=farm)
        self.live = Variant.objects.create(product=product, supplier=farm, unit_description="1kg")
        self.gone = Variant.objects.create(product=product, supplier=farm, unit_description="5kg")
        self.gone.delete()

    def test_list_hides_deleted_variants(self):
        response = self.client.get("/api/v1/catalog/variants/", HTTP_ACCEPT="application/json")

        self.assertEqual(response.status_code, 200)
        ids = [v["id"] for v in response.json()]
        self.assertEqual(ids, [str(self.live.pk)])


class ImportCatalogCommandTests(TestCase):
    def test_import_creates_and_updates(self):
        rows = (
            "supplier,product,unit_description,sku,price,on_hand,weight,temperature_controlled\n"
            "Green Farm,Milk,1L,MILK-1,2.50,10,1.0,yes\n"
            "Green Farm,Milk,2L,MILK-2,4.00,3,,no\n"
            ",Orphan,1kg,X,1,1,,\n"
        )
        with tempfile.NamedTemporaryFile("w", suffix=".csv", delete=False, encoding="utf-8") as f:
            f.write(rows)
            path = f.name
        self.addCleanup(os.remove, path)

        out = StringIO()
        call_command("import_catalog", path, stdout=out)
        call_command("import_catalog", path, stdout=out)

        self.assertIn("Successfully imported 2 variants (1 skipped)", out.getvalue())
        self.assertEqual(Variant.objects.count(), 2)
        milk = Variant.objects.get(sku="MILK-1")
        self.assertTrue(milk.temperature_controlled)
        self.assertTrue(milk.supplier.is_supplier)

    def test_missing_file(self):
        out = StringIO()
        call_command("import_catalog", "/nonexistent.csv", stdout=out)
        self.assertIn("File not found", out.getvalue())
