import mimetypes

from django.conf import settings
from django.core.files.base import ContentFile
from django.db import models

from apps.utils.models import TimestampedModel


class ReportBlob(TimestampedModel):
    """
    A rendered report kept for download.

    Background jobs create the row first and fill the file when the report
    is ready. An empty file with no error means "still generating"; a job
    that dies records its error instead.
    """
    filename = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, default="text/html")
    report_type = models.CharField(max_length=50, blank=True)
    file = models.FileField(upload_to="reports/%Y/%m/", blank=True)
    error = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="report_blobs",
    )

    class Meta:
        db_table = "report_blobs"
        ordering = ["-created_at"]

    def __str__(self):
        return self.filename

    @classmethod
    def create(cls, filename, content, created_by=None, report_type=""):
        blob = cls.objects.create(
            filename=filename,
            content_type=cls.content_type_for(filename),
            created_by=created_by,
            report_type=report_type,
        )
        blob.store(content)
        return blob

    @staticmethod
    def content_type_for(filename):
        return mimetypes.guess_type(filename)[0] or "application/octet-stream"

    def store(self, content: str):
        # Stored as UTF-8 bytes; `result` decodes them back
        self.file.save(self.filename, ContentFile(content.encode("utf-8")), save=False)
        self.save(update_fields=["file", "updated_at"])

    @property
    def is_ready(self) -> bool:
        return bool(self.file)

    @property
    def failed(self) -> bool:
        return bool(self.error)

    def mark_failed(self, error):
        self.error = str(error) or "Report generation failed"
        self.save(update_fields=["error", "updated_at"])

    @property
    def result(self) -> str:
        with self.file.open("rb") as f:
            return f.read().decode("utf-8")

    def purge(self):
        if self.file:
            self.file.delete(save=False)
        self.delete()
