import logging

from django.db import transaction
from django.utils import timezone

from apps.customers.services import CustomerService
from apps.inventory.services import InventoryService
from apps.utils.exceptions import BusinessLogicException

from .models import LineItem, Order

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    def associate_user(order, user):
        if order.user_id is not None or not user.is_authenticated:
            return order

        order.user = user
        order.email = order.email or user.email
        order.save(update_fields=["user", "email", "updated_at"])
        logger.info("Associated order %s with user %s", order.number, user.pk)
        return order

    @staticmethod
    def advance_to(order, state):
        if order.state == state:
            return order
        logger.info(
            "Order %s: %s -> %s", order.number, order.state, state,
            extra={"order_number": order.number},
        )
        order.state = state
        order.save(update_fields=["state", "updated_at"])
        return order

    @staticmethod
    @transaction.atomic
    def set_line_item_quantity(order, variant, quantity: int):
        """
        Cart population: sets (not adds) the quantity; zero removes the item.
        """
        if order.is_completed:
            raise BusinessLogicException("This order is already complete.")

        if quantity <= 0:
            order.line_items.filter(variant=variant).delete()
            line_item = None
        else:
            line_item, _ = LineItem.objects.update_or_create(
                order=order,
                variant=variant,
                defaults={"quantity": quantity, "price": variant.price},
            )

        order.update_totals()
        order.save(update_fields=["item_total", "shipment_total", "total", "updated_at"])
        return line_item

    @staticmethod
    def reset_order_cycle(order):
        order.order_cycle = None
        order.save(update_fields=["order_cycle", "updated_at"])
        return order

    @staticmethod
    @transaction.atomic
    def finalize(order):
        """
        Transition: confirmation -> complete.
        Deducts stock, links the hub's customer record and stamps
        completed_at.
        """
        if order.is_completed:
            raise BusinessLogicException("Order already completed.", code="order_completed")

        InventoryService.deduct_for_order(order)

        if order.customer_id is None and order.email and order.distributor_id:
            order.customer = CustomerService.find_or_create(
                order.distributor, order.email, order.user, order.bill_address
            )

        order.update_totals()
        order.completed_at = timezone.now()
        order.state = Order.State.COMPLETE
        order.shipment_state = Order.ShipmentState.PENDING
        order.payment_state = Order.PaymentState.BALANCE_DUE
        order.save()

        logger.info("Order %s completed", order.number, extra={"order_number": order.number})
        return order
