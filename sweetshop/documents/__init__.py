"""Documents package initialization."""

from .users import UserProfile, log_user_activity
from .orders import Order, OrderFactory
from .reviews import Review
from .products import Product

__all__ = ["UserProfile", "log_user_activity", "Order", "OrderFactory", "Review", "Product"]
