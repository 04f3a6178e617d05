from django.contrib import admin

from .models import ReportBlob


@admin.register(ReportBlob)
class ReportBlobAdmin(admin.ModelAdmin):
    list_display = ("filename", "report_type", "content_type", "created_by", "created_at", "failed")
    list_filter = ("report_type",)
    readonly_fields = ("file", "created_by", "error")
