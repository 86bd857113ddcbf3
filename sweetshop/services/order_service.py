"""Order history and shipment tracking."""

from typing import List

from sweetshop.apis.Db import Db
from sweetshop.documents.orders.Order import Order
from sweetshop.exceptions import PermissionError
from sweetshop.models.firestore_types import OrderDoc
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class OrderService:

    def __init__(self):
        self.db = Db.get_instance()

    def order_history(self, user_id: str) -> List[OrderDoc]:
        """All orders of a user, newest first.

        Raises:
            MissingIndexError: If the userId/orderDate index is not deployed
        """
        try:
            snaps = (
                self.db.collections["orders"]
                .where("userId", "==", user_id)
                .order_by("orderDate", direction="DESCENDING")
                .get()
            )
        except Exception as e:
            raise Db.translate_error(e, "orders")

        orders = []
        for snap in snaps:
            try:
                orders.append(OrderDoc(**{**(snap.to_dict() or {}), "id": snap.id}))
            except ValueError as e:
                logger.warning(f"Skipping malformed order {snap.id}: {e}")

        logger.info(f"Loaded {len(orders)} orders for {user_id}")
        return orders

    def tracked_orders(self, user_id: str) -> List[OrderDoc]:
        """Shipped or delivered orders that carry a tracking code."""
        return [order for order in self.order_history(user_id) if order.is_trackable]

    def get_order(self, user_id: str, order_id: str) -> OrderDoc:
        try:
            order = Order(order_id)
        except Exception as e:
            raise Db.translate_error(e, "orders")
        if not order.validate_permissions(user_id):
            raise PermissionError("You can only view your own orders.", resource=f"orders/{order_id}")
        return order.doc

    @staticmethod
    def status_label(order: OrderDoc) -> str:
        return order.statusLabel
