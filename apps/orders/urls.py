from django.urls import path

from .views import OrderDetailView

urlpatterns = [
    path("orders/<str:number>/", OrderDetailView.as_view(), name="order-detail"),
]
