"""Order document class."""

from sweetshop.documents.DocumentBase import DocumentBase
from sweetshop.models.firestore_types import OrderDoc


class Order(DocumentBase[OrderDoc]):
    """Order stored at orders/{id}. Orders are written once at checkout and read afterwards."""

    pydantic_model = OrderDoc
    collection_key = "orders"

    @property
    def doc(self) -> OrderDoc:
        return super().doc

    def validate_permissions(self, user_id: str) -> bool:
        return self.doc.userId == user_id
