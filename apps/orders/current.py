"""
The shopper's in-progress order lives in the session, so guests can
shop and check out without an account.
"""
import logging

from .models import Order

logger = logging.getLogger(__name__)

SESSION_ORDER_KEY = "order_id"
SESSION_TOKEN_KEY = "access_token"


def current_order(request, create=False):
    cached = getattr(request, "_current_order", None)
    if cached is not None:
        return cached

    order = None
    order_id = request.session.get(SESSION_ORDER_KEY)
    if order_id:
        order = (
            Order.objects.select_related("distributor", "order_cycle", "customer")
            .filter(pk=order_id)
            .first()
        )

    if order is None and create:
        user = request.user if request.user.is_authenticated else None
        order = Order.objects.create(user=user, email=user.email if user else "")
        request.session[SESSION_ORDER_KEY] = str(order.pk)
        request.session[SESSION_TOKEN_KEY] = order.token
        logger.info("Started order %s", order.number, extra={"order_number": order.number})

    request._current_order = order
    return order


def set_current_order(request, order):
    request._current_order = order


def forget_current_order(request):
    """
    Called once an order completes. The access token stays in the session
    so the shopper can still view the finished order.
    """
    request.session.pop(SESSION_ORDER_KEY, None)
    request._current_order = None
