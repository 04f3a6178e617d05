from django.shortcuts import get_object_or_404
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer, TemplateHTMLRenderer
from rest_framework.response import Response
from rest_framework.views import APIView

from .ability import OrderAbility
from .current import SESSION_TOKEN_KEY
from .models import Order
from .serializers import OrderSerializer


class OrderDetailView(APIView):
    """
    Order confirmation page. Guests reach it with the access token kept
    in their session (or `?order_token=`).
    """
    permission_classes = [AllowAny]
    renderer_classes = [TemplateHTMLRenderer, JSONRenderer]
    template_name = "orders/show.html"

    def get(self, request, number):
        order = get_object_or_404(
            Order.objects.select_related(
                "distributor", "order_cycle", "bill_address", "ship_address",
                "shipping_method", "payment_method",
            ),
            number=number,
        )
        token = request.query_params.get("order_token") or request.session.get(SESSION_TOKEN_KEY)
        OrderAbility(request.user).authorize("read", order, token)

        data = OrderSerializer(order).data
        if request.accepted_renderer.format == "html":
            return Response({"order": order, "data": data})
        return Response(data)
