from django.contrib import admin

from .models import Product, Variant


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ("unit_description", "display_name", "sku", "price", "on_hand", "on_demand", "deleted_at")
    readonly_fields = ("deleted_at",)

    def get_queryset(self, request):
        return Variant.all_objects.all()


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "supplier", "created_at")
    list_filter = ("supplier",)
    search_fields = ("name",)
    inlines = [VariantInline]


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    list_display = ("product", "unit_description", "supplier", "on_hand", "on_demand", "deleted_at")
    list_filter = ("on_demand", "temperature_controlled", "supplier")
    search_fields = ("product__name", "sku", "unit_description")

    def get_queryset(self, request):
        return Variant.all_objects.select_related("product", "supplier")
