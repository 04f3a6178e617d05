import csv
import io
from datetime import date, timedelta
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from apps.catalog.models import Product, Variant
from apps.customers.models import Address, Customer
from apps.enterprises.models import Enterprise, ShippingMethod
from apps.order_cycles.models import OrderCycle
from apps.orders.models import LineItem, Order

from .filters import one_month_before, search_params, with_default_dates
from .models import ReportBlob
from .tasks import generate_report, purge_expired_report_blobs

User = get_user_model()

JSON = {"HTTP_ACCEPT": "application/json"}


def report_url(report_type, query=""):
    return f"/admin/reports/packing/{report_type}/{'?' + query if query else ''}"


class ReportBlobTests(TestCase):
    def test_preserves_utf8_content(self):
        content = "This works. ✓"

        blob = ReportBlob.create("customers.html", content)
        result = ReportBlob.objects.get(pk=blob.pk).result

        self.assertIsInstance(result, str)
        self.assertEqual(result, content)
        self.assertEqual(blob.content_type, "text/html")

    def test_empty_blob_is_not_ready(self):
        blob = ReportBlob.objects.create(filename="pending.csv", content_type="text/csv")
        self.assertFalse(blob.is_ready)

        blob.store("a,b\n")
        self.assertTrue(blob.is_ready)
        self.assertEqual(blob.result, "a,b\n")

    def test_purge_expired_blobs(self):
        old = ReportBlob.create("old.csv", "x")
        ReportBlob.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=3))
        fresh = ReportBlob.create("fresh.csv", "y")

        result = purge_expired_report_blobs()

        self.assertEqual(result, "Purged 1 report blobs")
        self.assertEqual(list(ReportBlob.objects.values_list("pk", flat=True)), [fresh.pk])


class SearchParamTests(TestCase):
    def test_default_dates(self):
        params = with_default_dates({}, today=date(2026, 3, 31))

        self.assertEqual(params["order_completed_at_gt"], "2026-02-28 00:00")
        self.assertEqual(params["order_completed_at_lt"], "2026-04-01 00:00")

    def test_given_dates_are_kept(self):
        params = with_default_dates({"order_completed_at_gt": "2026-01-01 00:00"}, today=date(2026, 3, 31))
        self.assertEqual(params["order_completed_at_gt"], "2026-01-01 00:00")

    def test_one_month_before_crosses_year(self):
        self.assertEqual(one_month_before(date(2026, 1, 15)), date(2025, 12, 15))

    def test_search_params_parses_brackets(self):
        from django.http import QueryDict

        query = QueryDict("q[order_cycle_id_in][]=a&q[order_cycle_id_in][]=b&q[supplier_id_in]=&format=json")
        self.assertEqual(search_params(query), {"order_cycle_id_in": "a,b"})


class PackingReportFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(email="admin@example.com", password="pass1234", is_staff=True)

        distributor_address = Address.objects.create(
            address1="distributor address", city="The Shire", zipcode="1234"
        )
        self.distributor = Enterprise.objects.create(
            name="Hub", is_distributor=True, address=distributor_address
        )
        self.supplier = Enterprise.objects.create(name="Supplier", is_supplier=True)
        self.delivery = ShippingMethod.objects.create(name="Home delivery")

        self.order1 = self.completed_order(lastname="ABRA")
        self.order2 = self.completed_order(lastname="KADABRA")
        Customer.objects.create(enterprise=self.distributor, email=self.order1.email, code="C-001")
        self.order1.customer = Customer.objects.get(code="C-001")
        self.order1.save()

        product1 = Product.objects.create(name="Product 1", supplier=self.supplier)
        self.variant1 = self.make_variant(product1, "Big", temperature_controlled=True)
        self.variant2 = self.make_variant(product1, "Small")
        product2 = Product.objects.create(name="Product 2", supplier=self.supplier)
        self.variant3 = self.make_variant(product2, "1kg")

        LineItem.objects.create(order=self.order1, variant=self.variant1, quantity=1)
        LineItem.objects.create(order=self.order1, variant=self.variant2, quantity=3)
        LineItem.objects.create(order=self.order2, variant=self.variant3, quantity=3)

    def completed_order(self, lastname, distributor=None, **fields):
        bill_address = Address.objects.create(
            firstname="Ali", lastname=lastname, address1="1 Road", city="Town", zipcode="1000"
        )
        return Order.objects.create(
            distributor=distributor or self.distributor,
            email=f"{lastname.lower()}@example.com",
            bill_address=bill_address,
            shipping_method=self.delivery,
            state=Order.State.COMPLETE,
            shipment_state=Order.ShipmentState.PENDING,
            completed_at=timezone.now(),
            **fields,
        )

    def make_variant(self, product, unit, supplier=None, **fields):
        return Variant.objects.create(
            product=product, supplier=supplier or self.supplier, unit_description=unit, on_hand=100, **fields
        )

    def get_report(self, report_type, query="", user=None):
        self.client.force_login(user or self.admin)
        return self.client.get(report_url(report_type, query), **JSON)


class PackByCustomerTests(PackingReportFixtureMixin, TestCase):
    def test_headers_and_rows(self):
        response = self.get_report("pack_by_customer")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["headers"], [
            "Hub", "Customer Code", "First Name", "Last Name", "Supplier",
            "Product", "Variant", "Weight", "Height", "Width", "Depth",
            "Quantity", "TempControlled?",
        ])
        # One totals row per order
        self.assertEqual(len(data["rows"]), 5)

    def test_sorted_by_last_name_with_summary_rows(self):
        rows = self.get_report("pack_by_customer").json()["rows"]

        self.assertEqual([row[3] for row in rows], ["ABRA", "ABRA", "", "KADABRA", ""])
        summary = rows[2]
        self.assertEqual(summary[0], "TOTAL")
        self.assertEqual(summary[11], 4)
        self.assertEqual(set(summary[1:11] + summary[12:]), {""})

    def test_row_values(self):
        rows = self.get_report("pack_by_customer").json()["rows"]

        first = rows[0]
        self.assertEqual(first[:7], ["Hub", "C-001", "Ali", "ABRA", "Supplier", "Product 1", "Big"])
        self.assertEqual(first[11:], [1, "Yes"])
        self.assertEqual(rows[1][12], "No")

    def test_html_table_and_prefilled_dates(self):
        self.client.force_login(self.admin)
        response = self.client.get(report_url("pack_by_customer"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'class="report__table"')
        defaults = with_default_dates({})
        self.assertContains(response, f'value="{defaults["order_completed_at_gt"]}"')
        self.assertContains(response, f'value="{defaults["order_completed_at_lt"]}"')

    def test_given_dates_are_echoed(self):
        response = self.get_report(
            "pack_by_customer", "q[order_completed_at_gt]=2020-01-01%2000:00&q[order_completed_at_lt]=2030-01-01%2000:00"
        )
        self.assertEqual(response.json()["q"]["order_completed_at_gt"], "2020-01-01 00:00")
        self.assertEqual(response.json()["q"]["order_completed_at_lt"], "2030-01-01 00:00")

    def test_optional_columns(self):
        response = self.get_report("pack_by_customer", "fields_to_show=shipment_state,shipping_method")

        headers = response.json()["headers"]
        self.assertIn("Shipment State", headers)
        self.assertIn("Shipping Method", headers)
        self.assertEqual(response.json()["rows"][0][-2:], ["Pending", "Home delivery"])

    def test_optional_columns_hidden_by_default(self):
        headers = self.get_report("pack_by_customer").json()["headers"]
        self.assertNotIn("Shipment State", headers)
        self.assertNotIn("Shipping Method", headers)

    def test_header_rows(self):
        rows = self.get_report("pack_by_customer", "display_header_row=1").json()["rows"]
        self.assertEqual(len(rows), 7)
        self.assertIn("ABRA", rows[0][0])

    def test_csv(self):
        self.client.force_login(self.admin)
        response = self.client.get(report_url("pack_by_customer", "format=csv"))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response["Content-Type"].startswith("text/csv"))
        self.assertIn("attachment", response["Content-Disposition"])
        lines = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))
        self.assertEqual(lines[0][0], "Hub")
        self.assertEqual(len(lines), 6)

    def test_orders_completed_today_included_by_default(self):
        start_of_today = timezone.localtime().replace(hour=0, minute=0, second=1, microsecond=0)
        Order.objects.filter(pk=self.order2.pk).update(completed_at=start_of_today)

        rows = self.get_report("pack_by_customer").json()["rows"]
        self.assertTrue(any("KADABRA" in row for row in rows))

    def test_old_orders_excluded_by_default(self):
        Order.objects.filter(pk=self.order2.pk).update(completed_at=timezone.now() - timedelta(days=60))

        rows = self.get_report("pack_by_customer").json()["rows"]
        self.assertEqual(len(rows), 3)

    def test_incomplete_and_canceled_orders_excluded(self):
        Order.objects.filter(pk=self.order1.pk).update(state=Order.State.CANCELED)
        Order.objects.filter(pk=self.order2.pk).update(completed_at=None)

        rows = self.get_report("pack_by_customer").json()["rows"]
        self.assertEqual(rows, [])

    def test_invalid_filter_is_422(self):
        response = self.get_report("pack_by_customer", "q[distributor_id_in]=not-a-uuid")
        self.assertEqual(response.status_code, 422)
        self.assertIn("distributor_id_in", response.json()["errors"])

    def test_unknown_report_is_404(self):
        response = self.get_report("pack_by_colour")
        self.assertEqual(response.status_code, 404)


class PackBySupplierTests(PackingReportFixtureMixin, TestCase):
    def test_headers_without_summary_rows(self):
        response = self.get_report("pack_by_supplier", "display_summary_row=false")

        data = response.json()
        self.assertEqual(data["headers"], [
            "Hub", "Supplier", "Customer Code", "First Name", "Last Name",
            "Product", "Variant", "Quantity", "TempControlled?",
        ])
        self.assertEqual(len(data["rows"]), 3)

    def test_summary_per_supplier(self):
        other = Enterprise.objects.create(name="Another Supplier", is_supplier=True)
        product = Product.objects.create(name="Cheese", supplier=other)
        LineItem.objects.create(order=self.order2, variant=self.make_variant(product, "wheel", supplier=other), quantity=2)

        rows = self.get_report("pack_by_supplier").json()["rows"]

        totals = [row for row in rows if row[0] == "TOTAL"]
        self.assertEqual([row[7] for row in totals], [2, 7])
        self.assertEqual(rows[0][1], "Another Supplier")

    def test_filter_by_supplier(self):
        other = Enterprise.objects.create(name="Another Supplier", is_supplier=True)
        product = Product.objects.create(name="Cheese", supplier=other)
        LineItem.objects.create(order=self.order2, variant=self.make_variant(product, "wheel", supplier=other), quantity=2)

        rows = self.get_report(
            "pack_by_supplier", f"q[supplier_id_in]={other.pk}&display_summary_row=false"
        ).json()["rows"]

        self.assertEqual([row[5] for row in rows], ["Cheese"])


class PackByProductTests(PackingReportFixtureMixin, TestCase):
    def test_soft_deleted_variant_still_reported(self):
        order_cycle = OrderCycle.objects.create(name="Weekly", coordinator=self.distributor)
        order = self.completed_order(lastname="ZED", order_cycle=order_cycle)
        gone_product = Product.objects.create(name="Discontinued Jam", supplier=self.supplier)
        kept_product = Product.objects.create(name="Honey", supplier=self.supplier)
        gone = self.make_variant(gone_product, "jar")
        LineItem.objects.create(order=order, variant=gone, quantity=1)
        LineItem.objects.create(order=order, variant=self.make_variant(kept_product, "jar"), quantity=1)
        gone.delete()

        response = self.get_report("pack_by_product", f"q[order_cycle_id_in]={order_cycle.pk}")

        products = {row[2] for row in response.json()["rows"] if row[0] != "TOTAL"}
        self.assertEqual(products, {"Discontinued Jam", "Honey"})

    def test_summary_per_product(self):
        rows = self.get_report("pack_by_product").json()["rows"]

        self.assertEqual([row[0] for row in rows], ["Hub", "Hub", "TOTAL", "Hub", "TOTAL"])
        self.assertEqual(rows[2][7], 4)


class ReportPermissionTests(PackingReportFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        other_hub = Enterprise.objects.create(name="Other Hub", is_distributor=True)
        self.other_order = self.completed_order(lastname="OTHER", distributor=other_hub)
        LineItem.objects.create(order=self.other_order, variant=self.variant3, quantity=5)

    def test_anonymous_denied(self):
        response = self.client.get(report_url("pack_by_customer"), **JSON)
        self.assertIn(response.status_code, (401, 403))

    def test_user_without_enterprises_denied(self):
        nobody = User.objects.create_user(email="nobody@example.com", password="pass1234")
        self.assertEqual(self.get_report("pack_by_customer", user=nobody).status_code, 403)

    def test_hub_manager_sees_own_orders_only(self):
        manager = User.objects.create_user(email="manager@example.com", password="pass1234")
        self.distributor.managers.add(manager)

        rows = self.get_report("pack_by_customer", "display_summary_row=false", user=manager).json()["rows"]

        self.assertEqual({row[0] for row in rows}, {"Hub"})
        self.assertEqual(len(rows), 3)

    def test_supplier_manager_sees_own_line_items(self):
        farmer = User.objects.create_user(email="farmer@example.com", password="pass1234")
        self.supplier.managers.add(farmer)

        rows = self.get_report("pack_by_supplier", "display_summary_row=false", user=farmer).json()["rows"]

        self.assertEqual(len(rows), 4)

    def test_staff_sees_everything(self):
        rows = self.get_report("pack_by_customer", "display_summary_row=false").json()["rows"]
        self.assertEqual(len(rows), 4)


class BackgroundReportTests(PackingReportFixtureMixin, TestCase):
    def test_background_report_fills_blob(self):
        response = self.get_report("pack_by_customer", "background=1")

        self.assertEqual(response.status_code, 202)
        blob = ReportBlob.objects.get(pk=response.json()["blob_id"])
        self.assertEqual(blob.created_by, self.admin)
        self.assertTrue(blob.is_ready)
        self.assertEqual(blob.content_type, "application/json")
        self.assertIn("KADABRA", blob.result)

        download = self.client.get(response.json()["download_url"])
        self.assertEqual(download.status_code, 200)
        self.assertIn("KADABRA", download.content.decode("utf-8"))

    def test_background_csv(self):
        self.client.force_login(self.admin)
        response = self.client.get(report_url("pack_by_supplier", "background=1&format=csv"))

        self.assertEqual(response.status_code, 202)
        blob = ReportBlob.objects.get()
        self.assertTrue(blob.filename.endswith(".csv"))
        self.assertEqual(blob.content_type, "text/csv")
        self.assertTrue(blob.result.startswith("Hub,Supplier"))

    @patch("apps.reports.views.generate_report.delay")
    def test_download_pending(self, mock_delay):
        response = self.get_report("pack_by_customer", "background=1")

        mock_delay.assert_called_once()
        download = self.client.get(response.json()["download_url"])
        self.assertEqual(download.status_code, 202)
        self.assertEqual(download.json()["status"], "pending")

    @patch("apps.reports.views.generate_report.delay")
    def test_background_with_bad_filter_is_422(self, mock_delay):
        response = self.get_report("pack_by_customer", "background=1&q[distributor_id_in]=not-a-uuid")

        self.assertEqual(response.status_code, 422)
        self.assertIn("distributor_id_in", response.json()["errors"])
        mock_delay.assert_not_called()
        self.assertFalse(ReportBlob.objects.exists())

    def test_failed_job_is_recorded_on_blob(self):
        blob = ReportBlob.objects.create(
            filename="pack.json", content_type="application/json",
            report_type="pack_by_customer", created_by=self.admin,
        )

        with self.assertLogs("apps.reports.tasks", level="ERROR"):
            result = generate_report(
                str(blob.pk), "pack_by_customer", {"distributor_id_in": "not-a-uuid"}, {},
                str(self.admin.pk), "json",
            )

        self.assertIn("failed", result)
        blob.refresh_from_db()
        self.assertTrue(blob.failed)
        self.assertFalse(blob.is_ready)
        self.assertIn("distributor_id_in", blob.error)

        self.client.force_login(self.admin)
        download = self.client.get(f"/admin/reports/blobs/{blob.pk}/")
        self.assertEqual(download.status_code, 500)
        self.assertEqual(download.json()["status"], "failed")

    def test_blob_hidden_from_other_managers(self):
        blob = ReportBlob.create("pack.html", "<table></table>", created_by=self.admin)
        manager = User.objects.create_user(email="manager@example.com", password="pass1234")
        self.distributor.managers.add(manager)
        self.client.force_login(manager)

        response = self.client.get(f"/admin/reports/blobs/{blob.pk}/")
        self.assertEqual(response.status_code, 404)


class ReportsIndexTests(PackingReportFixtureMixin, TestCase):
    def test_lists_packing_reports(self):
        self.client.force_login(self.admin)
        response = self.client.get("/admin/reports/")

        self.assertEqual(response.status_code, 200)
        for title in ("Pack By Customer", "Pack By Supplier", "Pack By Product"):
            self.assertContains(response, title)
