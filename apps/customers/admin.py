from django.contrib import admin

from .models import Address, Customer


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("firstname", "lastname", "address1", "city", "zipcode")
    search_fields = ("firstname", "lastname", "address1", "city", "zipcode")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("email", "code", "enterprise", "user", "created_at")
    list_filter = ("enterprise",)
    search_fields = ("email", "code", "first_name", "last_name")
    raw_id_fields = ("user", "bill_address", "ship_address")
