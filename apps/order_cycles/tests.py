from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from apps.catalog.models import Product, Variant
from apps.enterprises.models import Enterprise
from apps.order_cycles.models import OrderCycle
from apps.orders.models import LineItem, Order


class OrderCycleWindowTests(TestCase):
    def setUp(self):
        self.coordinator = Enterprise.objects.create(name="Coordinator", is_distributor=True)
        self.now = timezone.now()

    def _cycle(self, open_at, close_at):
        return OrderCycle.objects.create(
            name="Weekly", coordinator=self.coordinator,
            orders_open_at=open_at, orders_close_at=close_at,
        )

    def test_open_cycle(self):
        oc = self._cycle(self.now - timedelta(days=1), self.now + timedelta(days=1))
        self.assertTrue(oc.is_open())
        self.assertFalse(oc.is_closed())
        self.assertIn(oc, OrderCycle.objects.open())

    def test_closed_cycle(self):
        oc = self._cycle(self.now - timedelta(days=7), self.now - timedelta(minutes=1))
        self.assertFalse(oc.is_open())
        self.assertTrue(oc.is_closed())
        self.assertNotIn(oc, OrderCycle.objects.open())

    def test_upcoming_cycle_is_neither_open_nor_closed(self):
        oc = self._cycle(self.now + timedelta(days=1), self.now + timedelta(days=2))
        self.assertFalse(oc.is_open())
        self.assertFalse(oc.is_closed())

    def test_cycle_without_close_date_stays_open(self):
        oc = self._cycle(self.now - timedelta(days=1), None)
        self.assertTrue(oc.is_open())
        self.assertFalse(oc.is_closed())


class DistributedVariantsTests(TestCase):
    def setUp(self):
        self.hub = Enterprise.objects.create(name="Hub", is_distributor=True)
        self.other_hub = Enterprise.objects.create(name="Other Hub", is_distributor=True)
        supplier = Enterprise.objects.create(name="Farm", is_supplier=True)
        product = Product.objects.create(name="Apples", supplier=supplier)
        self.offered = Variant.objects.create(product=product, supplier=supplier, unit_description="1kg")
        self.not_offered = Variant.objects.create(product=product, supplier=supplier, unit_description="5kg")

        self.oc = OrderCycle.objects.create(
            name="Weekly", coordinator=self.hub,
            orders_open_at=timezone.now() - timedelta(days=1),
            orders_close_at=timezone.now() + timedelta(days=1),
        )
        self.oc.distributors.add(self.hub)
        self.oc.variants.add(self.offered)

        self.order = Order.objects.create(distributor=self.hub, order_cycle=self.oc)

    def test_distributes_offered_variants(self):
        LineItem.objects.create(order=self.order, variant=self.offered, quantity=1, price=1)
        self.assertTrue(self.oc.distributes_order_variants(self.order))

    def test_rejects_variant_not_in_cycle(self):
        LineItem.objects.create(order=self.order, variant=self.not_offered, quantity=1, price=1)
        self.assertFalse(self.oc.distributes_order_variants(self.order))

    def test_rejects_other_hub(self):
        LineItem.objects.create(order=self.order, variant=self.offered, quantity=1, price=1)
        self.order.distributor = self.other_hub
        self.assertFalse(self.oc.distributes_order_variants(self.order))
