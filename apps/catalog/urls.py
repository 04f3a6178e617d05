from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import VariantViewSet

router = DefaultRouter()
router.register(r"variants", VariantViewSet, basename="variant")

urlpatterns = [
    path("", include(router.urls)),
]
