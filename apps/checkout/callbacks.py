"""
Before-action wiring for the checkout endpoint.

Guards run first and may halt the request by returning a response. The
stock sync (update only) runs next, outside any transaction, because it
talks to remote catalogs. Everything after that runs inside
`CurrentOrderLocker`, holding a row lock on the shopper's order until
the action finishes.
"""
import logging
import sys

from django.contrib import messages
from django.db import transaction
from django.shortcuts import redirect
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer, TemplateHTMLRenderer
from rest_framework.response import Response

from apps.customers.services import AddressFinder
from apps.inventory.services import StockSyncService
from apps.orders.ability import OrderAbility
from apps.orders.current import SESSION_TOKEN_KEY, current_order, set_current_order
from apps.orders.models import Order
from apps.orders.services import OrderService

logger = logging.getLogger(__name__)

ORDER_CYCLE_CLOSED_MESSAGE = "The order cycle you've selected has just closed. Please try again!"
HUB_NOT_READY_MESSAGE = (
    "The hub you have selected is temporarily closed for online orders. "
    "Please try again later."
)


class CurrentOrderLocker:
    """
    Opens a transaction and re-reads the current order with
    SELECT ... FOR UPDATE, so concurrent checkouts of one order serialize.
    """

    def __init__(self, request):
        self.request = request
        self._atomic = transaction.atomic()

    def __enter__(self):
        self._atomic.__enter__()
        try:
            order = current_order(self.request)
            if order is not None:
                # No select_related: FOR UPDATE can't lock the nullable side of an outer join
                order = Order.objects.select_for_update().get(pk=order.pk)
                set_current_order(self.request, order)
        except Exception:
            self._atomic.__exit__(*sys.exc_info())
            raise
        return order

    def __exit__(self, exc_type, exc_value, traceback):
        return self._atomic.__exit__(exc_type, exc_value, traceback)


class CheckoutCallbacksMixin:
    """
    Mixed into an APIView whose handlers call `run_action("edit")` or
    `run_action("update")`. Each callback returns None to continue or a
    response to halt the chain.
    """
    permission_classes = [AllowAny]
    renderer_classes = [TemplateHTMLRenderer, JSONRenderer]

    guard_callbacks = (
        "require_distributor_chosen",
        "require_order_cycle",
        "check_order_cycle_expiry",
        "check_hub_ready_for_checkout",
    )
    locked_callbacks = (
        "load_order",
        "associate_user",
        "load_saved_addresses",
        "load_shipping_methods",
        "ensure_order_not_completed",
        "ensure_checkout_allowed",
        "check_authorization",
    )

    order = None
    step = None
    shipping_methods = ()

    def run_action(self, action):
        self.step = self.request.query_params.get("step") or self.request.data.get("step")
        self.order = current_order(self.request)

        response = self._run_callbacks(self.guard_callbacks)
        if response is not None:
            return response

        if action == "update":
            self.sync_stock()

        with CurrentOrderLocker(self.request) as order:
            self.order = order
            response = self._run_callbacks(self.locked_callbacks)
            if response is not None:
                return response
            return getattr(self, action)()

    def _run_callbacks(self, names):
        for name in names:
            response = getattr(self, name)()
            if response is not None:
                logger.debug("Checkout halted by %s", name)
                return response
        return None

    @property
    def wants_json(self):
        return self.request.accepted_renderer.format == "json"

    def redirect_to_cart(self):
        cart_path = reverse("cart")
        if self.wants_json:
            return Response({"path": cart_path}, status=status.HTTP_400_BAD_REQUEST)
        return redirect(cart_path)

    # Guards

    def require_distributor_chosen(self):
        if self.order is None or self.order.distributor_id is None:
            return redirect("home")
        return None

    def require_order_cycle(self):
        if self.order.order_cycle_id is None:
            return redirect("shop")
        return None

    def check_order_cycle_expiry(self):
        if not self.order.order_cycle.is_closed():
            return None

        logger.warning(
            "Order cycle %s closed during checkout of order %s",
            self.order.order_cycle_id, self.order.number,
            extra={"order_number": self.order.number},
        )
        self.order.empty()
        OrderService.reset_order_cycle(self.order)
        messages.info(self.request._request, ORDER_CYCLE_CLOSED_MESSAGE)
        return redirect("shop")

    def check_hub_ready_for_checkout(self):
        if self.order.distributor.ready_for_checkout():
            return None

        self.order.empty()
        messages.error(self.request._request, HUB_NOT_READY_MESSAGE)
        return redirect("shop")

    def sync_stock(self):
        if self.order.state == Order.State.CONFIRMATION:
            StockSyncService.sync_linked_catalogs_now(self.order)

    # Locked

    def load_order(self):
        order = self.order
        if order is None:
            return redirect("shop")

        order.manual_shipping_selection = True
        order.checkout_processing = True

        if not order.checkout_allowed or order.is_completed:
            return redirect("shop")

        if order.insufficient_stock_lines() or not order.order_cycle.distributes_order_variants(order):
            return self.redirect_to_cart()
        return None

    def associate_user(self):
        OrderService.associate_user(self.order, self.request.user)
        return None

    def load_saved_addresses(self):
        order = self.order
        if order.bill_address_id and order.ship_address_id:
            return None

        finder = AddressFinder(order.email, order.customer, self.request.user)
        update_fields = []
        for kind in ("bill_address", "ship_address"):
            if getattr(order, f"{kind}_id"):
                continue
            address = getattr(finder, kind)
            if address is None:
                continue
            address.save()
            setattr(order, kind, address)
            update_fields.append(kind)

        if update_fields:
            order.save(update_fields=update_fields + ["updated_at"])
        return None

    def load_shipping_methods(self):
        if self.step != "details":
            return None
        self.shipping_methods = sorted(
            self.order.distributor.available_shipping_methods(),
            key=lambda method: method.name.casefold(),
        )
        return None

    def ensure_order_not_completed(self):
        if self.order.is_completed:
            return redirect("cart")
        return None

    def ensure_checkout_allowed(self):
        if not self.order.checkout_allowed:
            return redirect("cart")
        return None

    def check_authorization(self):
        token = self.request.session.get(SESSION_TOKEN_KEY)
        OrderAbility(self.request.user).authorize("edit", self.order, token)
        return None
