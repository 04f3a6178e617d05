import logging

from django.shortcuts import redirect
from django.urls import reverse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.orders.current import forget_current_order
from apps.orders.serializers import OrderSerializer
from apps.utils.exceptions import InsufficientStock

from .callbacks import CheckoutCallbacksMixin
from .serializers import DetailsSerializer, PaymentSerializer
from .services import CHECKOUT_STEPS, CheckoutService, step_for, step_is_ahead

logger = logging.getLogger(__name__)


def checkout_path(step):
    return f"{reverse('checkout')}?step={step}"


class CheckoutView(CheckoutCallbacksMixin, APIView):
    """
    GET  /checkout/?step=details|payment|summary   -> edit
    POST /checkout/?step=...                        -> update
    """
    template_name = "checkout/edit.html"

    def get(self, request):
        return self.run_action("edit")

    def post(self, request):
        return self.run_action("update")

    def put(self, request):
        return self.run_action("update")

    def patch(self, request):
        return self.run_action("update")

    # Actions

    def edit(self):
        CheckoutService.start(self.order)
        if self.step not in CHECKOUT_STEPS or step_is_ahead(self.step, self.order):
            return redirect(checkout_path(step_for(self.order)))
        return self.render_step()

    def update(self):
        if self.step not in CHECKOUT_STEPS:
            return self.render_step(
                errors={"step": ["Unknown checkout step."]},
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        if step_is_ahead(self.step, self.order):
            return self.render_step(
                errors={"step": [f"Complete the {step_for(self.order)} step first."]},
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        return getattr(self, f"update_{self.step}")()

    def update_details(self):
        serializer = DetailsSerializer(
            data=self.request.data, context={"shipping_methods": self.shipping_methods}
        )
        if not serializer.is_valid():
            return self.render_step(errors=serializer.errors, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

        CheckoutService.apply_details(self.order, serializer.validated_data, self.request.user)
        return self.next_step("payment")

    def update_payment(self):
        serializer = PaymentSerializer(
            data=self.request.data, context={"payment_methods": self.payment_methods()}
        )
        if not serializer.is_valid():
            return self.render_step(errors=serializer.errors, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

        CheckoutService.apply_payment(self.order, serializer.validated_data["payment_method_id"])
        return self.next_step("summary")

    def update_summary(self):
        # Stock may have changed in the sync that ran before the lock
        if self.order.insufficient_stock_lines():
            return self.redirect_to_cart()

        try:
            CheckoutService.complete(self.order)
        except InsufficientStock as e:
            logger.warning("Order %s lost stock at completion: %s", self.order.number, e.message)
            return self.redirect_to_cart()

        forget_current_order(self.request)
        order_path = reverse("order-detail", kwargs={"number": self.order.number})
        if self.wants_json:
            return Response({"path": order_path, "order": OrderSerializer(self.order).data})
        return redirect(order_path)

    # Rendering

    def payment_methods(self):
        return list(self.order.distributor.available_payment_methods().order_by("name"))

    def next_step(self, step):
        path = checkout_path(step)
        if self.wants_json:
            return Response({"step": step, "path": path, "order": OrderSerializer(self.order).data})
        return redirect(path)

    def render_step(self, errors=None, status_code=status.HTTP_200_OK):
        step = self.step if self.step in CHECKOUT_STEPS else step_for(self.order)
        data = {
            "step": step,
            "order": OrderSerializer(self.order).data,
            "shipping_methods": [
                {"id": str(m.pk), "name": m.name, "requires_ship_address": m.requires_ship_address, "fee": str(m.fee)}
                for m in self.shipping_methods
            ],
            "payment_methods": [{"id": str(m.pk), "name": m.name} for m in self.payment_methods()],
            "errors": errors or {},
        }
        if self.wants_json:
            return Response(data, status=status_code)

        context = dict(data, order=self.order, shipping_methods=self.shipping_methods,
                       payment_methods=self.payment_methods())
        return Response(context, status=status_code)
