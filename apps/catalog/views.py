from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, viewsets
from rest_framework.permissions import AllowAny

from .models import Variant
from .serializers import VariantSerializer


class VariantViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public variant list. Soft-deleted variants are never listed.
    """
    queryset = Variant.objects.select_related("product", "supplier").order_by("product__name", "unit_description")
    serializer_class = VariantSerializer
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["supplier", "product", "on_demand"]
    search_fields = ["product__name", "display_name", "sku"]
