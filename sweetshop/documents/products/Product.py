"""Product document class."""

from typing import List
from sweetshop.documents.DocumentBase import DocumentBase
from sweetshop.models.firestore_types import ProductDoc, ReviewDoc
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class Product(DocumentBase[ProductDoc]):
    """Catalog product stored at products/{id}. Read-only from the storefront."""

    pydantic_model = ProductDoc
    collection_key = "products"

    @property
    def doc(self) -> ProductDoc:
        return super().doc

    def get_reviews(self, limit: int = 50) -> List[ReviewDoc]:
        """Get reviews from the product's review copy, newest first.

        Args:
            limit: Maximum number of reviews to return
        """
        snaps = (
            self.db.collections["productReviews"](self.id)
            .order_by("createdAt", direction="DESCENDING")
            .limit(limit)
            .get()
        )
        reviews = []
        for snap in snaps:
            data = snap.to_dict() or {}
            try:
                reviews.append(ReviewDoc(**{**data, "id": data.get("reviewId") or snap.id}))
            except ValueError as e:
                logger.warning(f"Skipping malformed review {snap.id} on product {self.id}: {e}")
        return reviews
