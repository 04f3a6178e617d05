"""
Packing reports: completed line items laid out for the people packing
boxes, grouped by customer, supplier or product.
"""
from collections import namedtuple
from itertools import groupby

Column = namedtuple("Column", ["key", "label", "value"])


def _dimension(value):
    return "" if value is None else format(value.normalize(), "f")


def _bill_address(line_item, field):
    address = line_item.order.bill_address
    return getattr(address, field) if address is not None else ""


COLUMNS = {
    "hub": Column("hub", "Hub", lambda li: li.order.distributor.name if li.order.distributor else ""),
    "customer_code": Column(
        "customer_code", "Customer Code", lambda li: li.order.customer.code if li.order.customer else ""
    ),
    "first_name": Column("first_name", "First Name", lambda li: _bill_address(li, "firstname")),
    "last_name": Column("last_name", "Last Name", lambda li: _bill_address(li, "lastname")),
    "supplier": Column("supplier", "Supplier", lambda li: li.variant.supplier.name),
    "product": Column("product", "Product", lambda li: li.variant.product.name),
    "variant": Column("variant", "Variant", lambda li: li.variant.full_name),
    "weight": Column("weight", "Weight", lambda li: _dimension(li.variant.weight)),
    "height": Column("height", "Height", lambda li: _dimension(li.variant.height)),
    "width": Column("width", "Width", lambda li: _dimension(li.variant.width)),
    "depth": Column("depth", "Depth", lambda li: _dimension(li.variant.depth)),
    "quantity": Column("quantity", "Quantity", lambda li: li.quantity),
    "temp_controlled": Column(
        "temp_controlled", "TempControlled?", lambda li: "Yes" if li.variant.temperature_controlled else "No"
    ),
    "shipment_state": Column(
        "shipment_state", "Shipment State", lambda li: li.order.get_shipment_state_display()
    ),
    "shipping_method": Column(
        "shipping_method",
        "Shipping Method",
        lambda li: li.order.shipping_method.name if li.order.shipping_method else "",
    ),
}

OPTIONAL_FIELDS = ("shipment_state", "shipping_method")


class PackingReport:
    """
    Base template. Subclasses pick the columns, the sort order and the
    grouping that summary (and header) rows are emitted for.
    """
    report_type = None
    title = None
    fields = ()
    summary_label = "TOTAL"

    def __init__(self, line_items, fields_to_show=(), display_summary_row=True, display_header_row=False):
        self.line_items = line_items
        self.fields_to_show = [f for f in fields_to_show if f in OPTIONAL_FIELDS]
        self.display_summary_row = display_summary_row
        self.display_header_row = display_header_row

    @property
    def columns(self):
        return [COLUMNS[key] for key in self.fields] + [COLUMNS[key] for key in self.fields_to_show]

    @property
    def headers(self):
        return [column.label for column in self.columns]

    def sort_key(self, line_item):
        raise NotImplementedError

    def group_key(self, line_item):
        raise NotImplementedError

    def group_label(self, line_item):
        return " - ".join(str(part) for part in self.group_label_parts(line_item))

    def group_label_parts(self, line_item):
        raise NotImplementedError

    def rows(self):
        columns = self.columns
        quantity_index = [c.key for c in columns].index("quantity")
        ordered = sorted(self.line_items, key=self.sort_key)

        rows = []
        for _, group in groupby(ordered, key=self.group_key):
            group = list(group)
            if self.display_header_row:
                rows.append(self._blank_row(columns, first=self.group_label(group[0])))
            for line_item in group:
                rows.append([column.value(line_item) for column in columns])
            if self.display_summary_row:
                summary = self._blank_row(columns, first=self.summary_label)
                summary[quantity_index] = sum(li.quantity for li in group)
                rows.append(summary)
        return rows

    @staticmethod
    def _blank_row(columns, first):
        return [first] + [""] * (len(columns) - 1)


def _casefold(value):
    return (value or "").casefold()


class PackByCustomer(PackingReport):
    report_type = "pack_by_customer"
    title = "Pack By Customer"
    fields = (
        "hub", "customer_code", "first_name", "last_name", "supplier", "product",
        "variant", "weight", "height", "width", "depth", "quantity", "temp_controlled",
    )

    def sort_key(self, li):
        return (
            _casefold(COLUMNS["hub"].value(li)),
            _casefold(_bill_address(li, "lastname")),
            li.order.number,
            _casefold(li.variant.supplier.name),
            _casefold(li.variant.product.name),
            _casefold(li.variant.full_name),
        )

    def group_key(self, li):
        return li.order_id

    def group_label_parts(self, li):
        return (COLUMNS["hub"].value(li), li.order.number, _bill_address(li, "lastname"))


class PackBySupplier(PackingReport):
    report_type = "pack_by_supplier"
    title = "Pack By Supplier"
    fields = (
        "hub", "supplier", "customer_code", "first_name", "last_name",
        "product", "variant", "quantity", "temp_controlled",
    )

    def sort_key(self, li):
        return (
            _casefold(COLUMNS["hub"].value(li)),
            _casefold(li.variant.supplier.name),
            _casefold(_bill_address(li, "lastname")),
            _casefold(li.variant.product.name),
            _casefold(li.variant.full_name),
        )

    def group_key(self, li):
        return (li.order.distributor_id, li.variant.supplier_id)

    def group_label_parts(self, li):
        return (COLUMNS["hub"].value(li), li.variant.supplier.name)


class PackByProduct(PackingReport):
    report_type = "pack_by_product"
    title = "Pack By Product"
    fields = (
        "hub", "supplier", "product", "variant", "customer_code",
        "first_name", "last_name", "quantity", "temp_controlled",
    )

    def sort_key(self, li):
        return (
            _casefold(COLUMNS["hub"].value(li)),
            _casefold(li.variant.supplier.name),
            _casefold(li.variant.product.name),
            _casefold(li.variant.full_name),
            _casefold(_bill_address(li, "lastname")),
        )

    def group_key(self, li):
        return (li.order.distributor_id, li.variant.supplier_id, li.variant.product_id)

    def group_label_parts(self, li):
        return (COLUMNS["hub"].value(li), li.variant.supplier.name, li.variant.product.name)


REPORTS = {report.report_type: report for report in (PackByCustomer, PackBySupplier, PackByProduct)}


def get_report_class(report_type):
    return REPORTS.get(report_type)
