from django.contrib import admin

from .models import Enterprise, PaymentMethod, ShippingMethod


@admin.register(Enterprise)
class EnterpriseAdmin(admin.ModelAdmin):
    list_display = ("name", "is_distributor", "is_supplier", "created_at")
    list_filter = ("is_distributor", "is_supplier")
    search_fields = ("name",)
    filter_horizontal = ("managers",)
    raw_id_fields = ("address",)


@admin.register(ShippingMethod)
class ShippingMethodAdmin(admin.ModelAdmin):
    list_display = ("name", "requires_ship_address", "fee")
    filter_horizontal = ("distributors",)


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("name", "active")
    list_filter = ("active",)
    filter_horizontal = ("distributors",)
