from django.contrib import admin

from .models import OrderCycle


@admin.register(OrderCycle)
class OrderCycleAdmin(admin.ModelAdmin):
    list_display = ("name", "coordinator", "orders_open_at", "orders_close_at")
    list_filter = ("coordinator",)
    search_fields = ("name",)
    filter_horizontal = ("distributors",)
    raw_id_fields = ("variants",)
