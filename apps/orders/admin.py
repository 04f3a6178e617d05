from django.contrib import admin

from .models import LineItem, Order


class LineItemInline(admin.TabularInline):
    model = LineItem
    extra = 0
    raw_id_fields = ("variant",)
    readonly_fields = ("price",)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "number",
        "email",
        "distributor",
        "order_cycle",
        "state",
        "shipment_state",
        "total",
        "completed_at",
    )
    list_filter = ("state", "shipment_state", "payment_state", "distributor")
    search_fields = ("number", "email", "customer__code")
    raw_id_fields = ("user", "customer", "bill_address", "ship_address")
    readonly_fields = ("number", "token", "item_total", "shipment_total", "total", "completed_at")
    inlines = [LineItemInline]
