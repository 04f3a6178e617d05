import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import ReportBlob
from .services import PackingReportService

logger = logging.getLogger(__name__)


@shared_task
def generate_report(blob_id, report_type, params, options, user_id, output_format="html"):
    """
    Fills a pre-created ReportBlob. The download endpoint answers 202
    until the file is stored, or reports the error if the job fails.
    """
    blob = ReportBlob.objects.get(pk=blob_id)

    try:
        user = get_user_model().objects.get(pk=user_id)
        report, params = PackingReportService.build(report_type, params, user, **options)
        content = PackingReportService.render(PackingReportService.as_data(report, params), output_format)
        blob.store(content)
    except Exception as e:
        logger.exception("Report %s failed for blob %s", report_type, blob_id, extra={"report_type": report_type})
        blob.mark_failed(e)
        return f"{report_type}: failed"

    logger.info("Report %s stored in blob %s", report_type, blob_id, extra={"report_type": report_type})
    return f"{report_type}: {len(content)} chars"


@shared_task
def purge_expired_report_blobs():
    cutoff = timezone.now() - timedelta(hours=getattr(settings, "REPORT_BLOB_TTL_HOURS", 24))
    count = 0
    for blob in ReportBlob.objects.filter(created_at__lt=cutoff):
        blob.purge()
        count += 1

    logger.info("Purged %s expired report blobs", count)
    return f"Purged {count} report blobs"
