import logging

from django.db import transaction

from apps.customers.models import Address
from apps.customers.services import CustomerService
from apps.orders.models import Order
from apps.orders.services import OrderService

logger = logging.getLogger(__name__)

CHECKOUT_STEPS = ("details", "payment", "summary")

STEP_FOR_STATE = {
    Order.State.CART: "details",
    Order.State.ADDRESS: "details",
    Order.State.DELIVERY: "details",
    Order.State.PAYMENT: "payment",
    Order.State.CONFIRMATION: "summary",
}


def step_for(order):
    return STEP_FOR_STATE.get(order.state, "details")


def step_is_ahead(step, order):
    """
    True when `step` can't be shown yet because the order hasn't reached it.
    """
    return CHECKOUT_STEPS.index(step) > CHECKOUT_STEPS.index(step_for(order))


class CheckoutService:
    """
    Applies validated checkout steps to a locked order.
    """

    @staticmethod
    def start(order):
        if order.state == Order.State.CART:
            OrderService.advance_to(order, Order.State.ADDRESS)
        return order

    @staticmethod
    @transaction.atomic
    def apply_details(order, data, user=None):
        """
        Transition: cart/address/delivery -> payment.
        Pickup methods don't need a ship address; the hub's is used.
        """
        shipping_method = data["shipping_method"]

        bill_address = Address.objects.create(**data["bill_address"])
        if shipping_method.requires_ship_address:
            ship_address = Address.objects.create(**data["ship_address"])
        elif order.distributor.address is not None:
            ship_address = order.distributor.address.copy()
            ship_address.save()
        else:
            ship_address = None

        order.email = data["email"]
        order.bill_address = bill_address
        order.ship_address = ship_address
        order.shipping_method = shipping_method
        order.special_instructions = data.get("special_instructions", "")

        if data.get("save_bill_address") or data.get("save_ship_address"):
            if order.customer_id is None:
                order.customer = CustomerService.find_or_create(order.distributor, order.email, user, bill_address)
            CustomerService.save_default_addresses(
                order.customer,
                bill_address=bill_address if data.get("save_bill_address") else None,
                ship_address=ship_address if data.get("save_ship_address") else None,
            )

        order.update_totals()
        order.state = Order.State.PAYMENT
        order.save()
        logger.info("Order %s: details saved", order.number, extra={"order_number": order.number})
        return order

    @staticmethod
    def apply_payment(order, payment_method):
        """
        Transition: payment -> confirmation.
        """
        order.payment_method = payment_method
        order.update_totals()
        order.state = Order.State.CONFIRMATION
        order.save(update_fields=[
            "payment_method", "item_total", "shipment_total", "total", "state", "updated_at",
        ])
        logger.info("Order %s: payment method chosen", order.number, extra={"order_number": order.number})
        return order

    @staticmethod
    def complete(order):
        return OrderService.finalize(order)
