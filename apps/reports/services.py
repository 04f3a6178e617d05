import csv
import io
import json
import logging

from django.db.models import Q
from django.template.loader import render_to_string

from apps.enterprises.permissions import managed_enterprise_ids
from apps.orders.models import LineItem, Order
from apps.utils.exceptions import BusinessLogicException

from .filters import PackingLineItemFilter, with_default_dates
from .packing import get_report_class

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = {
    "html": ("html", "text/html"),
    "json": ("json", "application/json"),
    "csv": ("csv", "text/csv"),
}


class ReportFilterError(Exception):
    def __init__(self, errors):
        self.errors = errors
        super().__init__(str(errors))


class PackingReportService:

    @staticmethod
    def base_queryset(user):
        """
        Line items of completed, non-canceled orders. Variants are joined
        directly, so soft-deleted ones still show up.
        """
        qs = (
            LineItem.objects
            .filter(order__completed_at__isnull=False)
            .exclude(order__state=Order.State.CANCELED)
            .select_related(
                "order__distributor",
                "order__customer",
                "order__bill_address",
                "order__shipping_method",
                "variant__product",
                "variant__supplier",
            )
        )
        if not user.is_staff:
            ids = managed_enterprise_ids(user)
            qs = qs.filter(Q(order__distributor_id__in=ids) | Q(variant__supplier_id__in=ids))
        return qs

    @staticmethod
    def filter_line_items(params, user):
        """
        Applies the q[...] filters with default dates filled in.
        Returns (filterset, params); raises ReportFilterError on bad values.
        """
        params = with_default_dates(params)
        filterset = PackingLineItemFilter(data=params, queryset=PackingReportService.base_queryset(user))
        if not filterset.is_valid():
            raise ReportFilterError(
                {field: [str(e) for e in errors] for field, errors in filterset.errors.items()}
            )
        return filterset, params

    @staticmethod
    def build(report_type, params, user, **options):
        """
        Returns (report, params) where params carry the defaulted dates.
        Raises ReportFilterError on bad filter values.
        """
        report_class = get_report_class(report_type)
        if report_class is None:
            raise BusinessLogicException(f"Unknown report: {report_type}", code="unknown_report")

        filterset, params = PackingReportService.filter_line_items(params, user)

        logger.info(
            "Building %s for user %s", report_type, user.pk,
            extra={"report_type": report_type, "user_id": str(user.pk)},
        )
        return report_class(list(filterset.qs), **options), params

    @staticmethod
    def as_data(report, params):
        return {
            "report_type": report.report_type,
            "title": report.title,
            "headers": report.headers,
            "rows": report.rows(),
            "q": params,
            "fields_to_show": report.fields_to_show,
            "display_summary_row": report.display_summary_row,
            "display_header_row": report.display_header_row,
        }

    @staticmethod
    def render(data, output_format):
        if output_format == "json":
            return json.dumps(data, default=str)
        if output_format == "csv":
            return render_csv(data["headers"], data["rows"])
        return render_to_string("reports/_table.html", data)


def render_csv(headers, rows):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()
