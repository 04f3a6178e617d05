"""
Top-level models import shim for the Orders app.

    from apps.orders.models import Order, LineItem

works while the models live in separate modules.
"""

from .order import *          # Order
from .line_item import *      # LineItem
