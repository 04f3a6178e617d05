from django.urls import path

from .views import CartPopulateView, CartView, HomeView, SelectOrderCycleView, ShopView

urlpatterns = [
    path("", HomeView.as_view(), name="home"),
    path("shop/", ShopView.as_view(), name="shop"),
    path("shop/order_cycle/", SelectOrderCycleView.as_view(), name="shop-order-cycle"),
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/populate/", CartPopulateView.as_view(), name="cart-populate"),
]
