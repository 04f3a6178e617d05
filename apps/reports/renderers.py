from rest_framework.renderers import BaseRenderer

from .services import render_csv


class CSVRenderer(BaseRenderer):
    """
    Renders report payloads ({"headers": [...], "rows": [...]}) as CSV.
    Anything else (errors) becomes key/value lines.
    """
    media_type = "text/csv"
    format = "csv"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        if isinstance(data, dict) and "headers" in data and "rows" in data:
            content = render_csv(data["headers"], data["rows"])
        elif isinstance(data, dict):
            content = render_csv(["field", "detail"], [[key, value] for key, value in data.items()])
        else:
            content = render_csv(["detail"], [[data]])
        return content.encode(self.charset)
