from django.urls import path

from .views import PackingReportView, ReportBlobView, ReportsIndexView

urlpatterns = [
    path("", ReportsIndexView.as_view(), name="reports"),
    path("packing/<str:report_type>/", PackingReportView.as_view(), name="packing-report"),
    path("blobs/<uuid:pk>/", ReportBlobView.as_view(), name="report-blob"),
]
