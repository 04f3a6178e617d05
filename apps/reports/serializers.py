from rest_framework import serializers

from .packing import OPTIONAL_FIELDS


class ReportOptionsSerializer(serializers.Serializer):
    fields_to_show = serializers.ListField(
        child=serializers.ChoiceField(choices=OPTIONAL_FIELDS), required=False, default=list
    )
    display_summary_row = serializers.BooleanField(required=False, default=True)
    display_header_row = serializers.BooleanField(required=False, default=False)
    background = serializers.BooleanField(required=False, default=False)

    def to_internal_value(self, data):
        # Accept fields_to_show=a,b as well as repeated params
        if hasattr(data, "getlist"):
            values = []
            for value in data.getlist("fields_to_show"):
                values.extend(v for v in value.split(",") if v)
            data = data.copy()
            data.setlist("fields_to_show", values)
        return super().to_internal_value(data)


class ReportBlobSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    filename = serializers.CharField()
    content_type = serializers.CharField()
    report_type = serializers.CharField()
    is_ready = serializers.BooleanField()
    failed = serializers.BooleanField()
    error = serializers.CharField()
    created_at = serializers.DateTimeField()
