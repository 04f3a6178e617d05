import logging

from django.http import Http404, HttpResponse
from django.shortcuts import get_object_or_404
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.renderers import JSONRenderer, TemplateHTMLRenderer
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.enterprises.permissions import IsStaffOrEnterpriseManager

from .filters import search_params
from .models import ReportBlob
from .packing import OPTIONAL_FIELDS, REPORTS
from .renderers import CSVRenderer
from .serializers import ReportBlobSerializer, ReportOptionsSerializer
from .services import OUTPUT_FORMATS, PackingReportService, ReportFilterError
from .tasks import generate_report

logger = logging.getLogger(__name__)


class ReportsIndexView(APIView):
    permission_classes = [IsStaffOrEnterpriseManager]
    renderer_classes = [TemplateHTMLRenderer, JSONRenderer]
    template_name = "reports/index.html"

    def get(self, request):
        reports = [
            {
                "report_type": report_type,
                "title": report.title,
                "url": reverse("packing-report", kwargs={"report_type": report_type}),
            }
            for report_type, report in REPORTS.items()
        ]
        return Response({"reports": reports})


class PackingReportView(APIView):
    """
    GET /admin/reports/packing/<report_type>/?q[order_cycle_id_in]=...

    Renders as HTML (default), JSON (?format=json) or CSV (?format=csv).
    With background=1 the report is written to a ReportBlob by a Celery
    job and the response is 202 with the download URL.
    """
    permission_classes = [IsStaffOrEnterpriseManager]
    renderer_classes = [TemplateHTMLRenderer, JSONRenderer, CSVRenderer]
    template_name = "reports/show.html"

    def get(self, request, report_type):
        if report_type not in REPORTS:
            raise Http404(f"Unknown report: {report_type}")

        options = ReportOptionsSerializer(data=request.query_params)
        if not options.is_valid():
            return Response(options.errors, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
        options = dict(options.validated_data)
        background = options.pop("background")

        if background:
            return self.enqueue(request, report_type, options)

        try:
            report, params = PackingReportService.build(
                report_type, search_params(request.query_params), request.user, **options
            )
        except ReportFilterError as e:
            return Response({"errors": e.errors}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

        data = PackingReportService.as_data(report, params)
        output_format = request.accepted_renderer.format
        if output_format == "html":
            data["optional_fields"] = OPTIONAL_FIELDS
            return Response(data)

        response = Response(data)
        if output_format == "csv":
            response["Content-Disposition"] = f'attachment; filename="{self.filename(report_type, "csv")}"'
        return response

    def enqueue(self, request, report_type, options):
        params = search_params(request.query_params)
        try:
            PackingReportService.filter_line_items(params, request.user)
        except ReportFilterError as e:
            return Response({"errors": e.errors}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

        output_format = request.accepted_renderer.format
        if output_format not in OUTPUT_FORMATS:
            output_format = "html"
        extension, content_type = OUTPUT_FORMATS[output_format]

        blob = ReportBlob.objects.create(
            filename=self.filename(report_type, extension),
            content_type=content_type,
            report_type=report_type,
            created_by=request.user,
        )
        generate_report.delay(
            str(blob.pk),
            report_type,
            params,
            options,
            str(request.user.pk),
            output_format,
        )
        logger.info("Queued %s as blob %s", report_type, blob.pk, extra={"report_type": report_type})

        download_url = reverse("report-blob", kwargs={"pk": blob.pk})
        return Response(
            {"blob_id": str(blob.pk), "download_url": download_url},
            status=status.HTTP_202_ACCEPTED,
            template_name="reports/queued.html",
        )

    @staticmethod
    def filename(report_type, extension):
        return f"{report_type}_{timezone.now():%Y%m%d_%H%M%S}.{extension}"


class ReportBlobView(APIView):
    """
    Downloads a generated report; 202 while the job is still running,
    500 when the job failed.
    """
    permission_classes = [IsStaffOrEnterpriseManager]
    renderer_classes = [JSONRenderer]

    def get(self, request, pk):
        blobs = ReportBlob.objects.all()
        if not request.user.is_staff:
            blobs = blobs.filter(created_by=request.user)
        blob = get_object_or_404(blobs, pk=pk)

        if blob.failed:
            return Response(
                {"status": "failed", **ReportBlobSerializer(blob).data},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        if not blob.is_ready:
            return Response(
                {"status": "pending", **ReportBlobSerializer(blob).data},
                status=status.HTTP_202_ACCEPTED,
            )

        response = HttpResponse(blob.result, content_type=f"{blob.content_type}; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{blob.filename}"'
        return response
