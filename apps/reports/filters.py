import calendar
import re
from datetime import datetime, time, timedelta

import django_filters
from django.utils import timezone

from apps.orders.models import LineItem

DATETIME_FORMAT = "%Y-%m-%d %H:%M"
SEARCH_PARAM = re.compile(r"^q\[(?P<name>\w+)\](\[\])?$")


class UUIDInFilter(django_filters.BaseInFilter, django_filters.UUIDFilter):
    pass


class PackingLineItemFilter(django_filters.FilterSet):
    order_completed_at_gt = django_filters.DateTimeFilter(field_name="order__completed_at", lookup_expr="gt")
    order_completed_at_lt = django_filters.DateTimeFilter(field_name="order__completed_at", lookup_expr="lt")
    order_cycle_id_in = UUIDInFilter(field_name="order__order_cycle_id", lookup_expr="in")
    distributor_id_in = UUIDInFilter(field_name="order__distributor_id", lookup_expr="in")
    supplier_id_in = UUIDInFilter(field_name="variant__supplier_id", lookup_expr="in")

    class Meta:
        model = LineItem
        fields = []


def search_params(query_params):
    """
    Pulls `q[name]` / `q[name][]` pairs out of the query string. Repeated
    values are joined with commas for the `_in` filters.
    """
    params = {}
    for key in query_params:
        match = SEARCH_PARAM.match(key)
        if not match:
            continue
        values = [v for v in query_params.getlist(key) if v != ""]
        if values:
            params[match.group("name")] = ",".join(values)
    return params


def one_month_before(day):
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def with_default_dates(params, today=None):
    """
    Missing date bounds default to one month ago and tomorrow (both at
    00:00). The returned params are echoed back so forms stay prefilled.
    """
    today = today or timezone.localdate()
    params = dict(params)
    params.setdefault(
        "order_completed_at_gt",
        datetime.combine(one_month_before(today), time.min).strftime(DATETIME_FORMAT),
    )
    # Exclusive upper bound: tomorrow 00:00 keeps orders completed today in view
    params.setdefault(
        "order_completed_at_lt",
        datetime.combine(today + timedelta(days=1), time.min).strftime(DATETIME_FORMAT),
    )
    return params
