"""Factory for creating Order documents at checkout."""

from typing import List, Optional
from sweetshop.apis.Db import Db
from sweetshop.documents.orders.Order import Order
from sweetshop.exceptions import ValidationError
from sweetshop.models.firestore_types import Address, OrderItem
from sweetshop.models.util_types import OrderStatus
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class OrderFactory:
    """Builds and writes new orders for one user."""

    def __init__(self, user_id: str):
        """Initialize OrderFactory.

        Args:
            user_id: Owner user ID for created orders
        """
        self.user_id = user_id
        self.db = Db.get_instance()

    def create(self, items: List[OrderItem], total_amount: float,
               shipping: Optional[Address] = None, coupon_code: Optional[str] = None) -> Order:
        """Write a new order with status Placed.

        Args:
            items: Purchased lines
            total_amount: Amount charged after discounts
            shipping: Optional delivery address
            coupon_code: Optional coupon applied to the order

        Returns:
            The created Order
        """
        if not items:
            raise ValidationError("Your cart is empty.", field="items")

        doc_ref = self.db.collections["orders"].document()
        data = {
            "userId": self.user_id,
            "items": [item.model_dump() for item in items],
            "status": OrderStatus.PLACED.value,
            "totalAmount": round(total_amount, 2),
            "shipping": shipping.model_dump() if shipping else None,
            "couponCode": coupon_code,
        }
        data = {k: v for k, v in data.items() if v is not None}
        order = Order(doc_ref.id, data)
        order.create_doc(data, server_timestamps=("orderDate",))

        logger.info(f"Created order {doc_ref.id} for {self.user_id} with {len(items)} items")
        return order
