"""Orders document package."""

from .Order import Order
from .OrderFactory import OrderFactory

__all__ = ["Order", "OrderFactory"]
