from rest_framework.exceptions import PermissionDenied


class OrderAbility:
    """
    Who may touch an order.

    Staff can do anything. Otherwise the order must belong to the user
    or be accessed with its token. Guests always need the token.
    """

    ORDER_ACTIONS = {"read", "edit", "update"}

    def __init__(self, user):
        self.user = user if user is not None and user.is_authenticated else None

    def can(self, action, order, token=None) -> bool:
        if order is None:
            return False
        if self.user is not None and self.user.is_staff:
            return True
        if action not in self.ORDER_ACTIONS:
            return False

        if self.user is not None and order.user_id == self.user.pk:
            return True
        return bool(order.token) and token == order.token

    def authorize(self, action, order, token=None):
        if not self.can(action, order, token):
            raise PermissionDenied("You are not authorized to access this order.")
