import logging

from django.shortcuts import redirect
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer, TemplateHTMLRenderer
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog.models import Variant
from apps.catalog.serializers import VariantSerializer
from apps.enterprises.models import Enterprise
from apps.inventory.services import StockSyncService
from apps.order_cycles.models import OrderCycle
from apps.orders.current import current_order
from apps.orders.serializers import OrderSerializer
from apps.orders.services import OrderService

from .serializers import CartPopulateSerializer, OrderCycleChoiceSerializer

logger = logging.getLogger(__name__)


class ShopBaseView(APIView):
    permission_classes = [AllowAny]
    renderer_classes = [TemplateHTMLRenderer, JSONRenderer]

    def wants_html(self, request):
        return request.accepted_renderer.format == "html"


class HomeView(ShopBaseView):
    """
    Hub list: the shopper's first stop.
    """
    template_name = "shop/home.html"

    def get(self, request):
        hubs = Enterprise.objects.filter(is_distributor=True).order_by("name")
        data = {"distributors": [{"id": str(h.pk), "name": h.name} for h in hubs]}
        if self.wants_html(request):
            return Response({"distributors": hubs, **data})
        return Response(data)


class ShopView(ShopBaseView):
    template_name = "shop/shop.html"

    def get(self, request):
        order = current_order(request)
        distributor = order.distributor if order else None
        order_cycle = order.order_cycle if order else None

        order_cycles = OrderCycle.objects.open().distributed_by(distributor) if distributor else OrderCycle.objects.none()
        variants = Variant.objects.none()
        if distributor and order_cycle:
            variants = (
                Variant.objects.filter(pk__in=order_cycle.distributed_variant_ids(distributor))
                .select_related("product", "supplier")
                .order_by("product__name", "unit_description")
            )

        data = {
            "distributor": str(distributor.pk) if distributor else None,
            "order_cycle": str(order_cycle.pk) if order_cycle else None,
            "order_cycles": [{"id": str(oc.pk), "name": oc.name} for oc in order_cycles],
            "variants": VariantSerializer(variants, many=True).data,
        }
        if self.wants_html(request):
            return Response({
                "order": order,
                "order_cycles": order_cycles,
                "variants": variants,
                **data,
            })
        return Response(data)


class SelectOrderCycleView(ShopBaseView):
    """
    Picks the hub and order cycle the current order shops in.
    """

    def post(self, request):
        serializer = OrderCycleChoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        distributor = Enterprise.objects.filter(
            pk=serializer.validated_data["distributor_id"], is_distributor=True
        ).first()
        order_cycle = OrderCycle.objects.open().filter(pk=serializer.validated_data["order_cycle_id"]).first()
        if distributor is None or order_cycle is None or not order_cycle.distributes(distributor):
            return Response(
                {"error": "That order cycle is not open at this hub.", "code": "order_cycle_unavailable"},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        order = current_order(request, create=True)
        if order.distributor_id and order.distributor_id != distributor.pk:
            logger.info("Order %s changed hub, emptying cart", order.number, extra={"order_number": order.number})
            order.empty()

        order.distributor = distributor
        order.order_cycle = order_cycle
        order.save(update_fields=["distributor", "order_cycle", "updated_at"])

        if self.wants_html(request):
            return redirect("shop")
        return Response({"distributor": str(distributor.pk), "order_cycle": str(order_cycle.pk)})


class CartView(ShopBaseView):
    template_name = "shop/cart.html"

    def get(self, request):
        order = current_order(request)
        if order is not None and order.line_items.exists():
            StockSyncService.sync_linked_catalogs_later(order)

        data = OrderSerializer(order).data if order else None
        if self.wants_html(request):
            return Response({"order": order, "data": data})
        return Response({"order": data})


class CartPopulateView(ShopBaseView):
    """
    Sets cart quantities. Only variants on offer in the current order
    cycle at the current hub can be added.
    """

    def post(self, request):
        order = current_order(request)
        if order is None or order.distributor_id is None or order.order_cycle_id is None:
            return Response(
                {"error": "Choose a hub and order cycle first.", "code": "no_order_cycle"},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        serializer = CartPopulateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quantities = serializer.validated_data["variants"]

        allowed = order.order_cycle.distributed_variant_ids(order.distributor)
        variants = {v.pk: v for v in Variant.objects.filter(pk__in=quantities.keys())}
        errors = {
            str(variant_id): "Not available in this order cycle."
            for variant_id in quantities
            if variant_id not in variants or variant_id not in allowed
        }
        if errors:
            return Response({"variants": errors}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

        for variant_id, quantity in quantities.items():
            OrderService.set_line_item_quantity(order, variants[variant_id], quantity)

        if self.wants_html(request):
            return redirect("cart")
        return Response({"order": OrderSerializer(order).data})
