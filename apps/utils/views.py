from importlib.metadata import PackageNotFoundError, version

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.order_cycles.models import OrderCycle


def _package_version():
    try:
        return version("foodhub")
    except PackageNotFoundError:
        return "dev"


class ServerInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({
            "app_name": settings.PROJECT_NAME,
            "version": _package_version(),
            "time_zone": settings.TIME_ZONE,
            "open_order_cycles": OrderCycle.objects.open().count(),
        })
