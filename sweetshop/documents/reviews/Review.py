"""Review document class."""

from sweetshop.documents.DocumentBase import DocumentBase
from sweetshop.models.firestore_types import ReviewDoc
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class Review(DocumentBase[ReviewDoc]):
    """Review stored at reviews/{id}.

    Every review has a read copy at products/{productId}/reviews/{id} with the
    same id, so the copy can be recreated idempotently.
    """

    pydantic_model = ReviewDoc
    collection_key = "reviews"

    @property
    def doc(self) -> ReviewDoc:
        return super().doc

    def validate_permissions(self, user_id: str) -> bool:
        return self.doc.userId == user_id

    def payload(self) -> dict:
        return self.doc.model_dump(exclude={"id", "createdAt", "updatedAt"})

    def write(self):
        """Create the global review with server timestamps. Fails if it already exists."""
        now = self.db.server_timestamp
        self.get_doc_ref().create({**self.payload(), "createdAt": now, "updatedAt": now})
        logger.info(f"Wrote review {self.id} for product {self.doc.productId}")

    def mirror_ref(self):
        return self.db.collections["productReviews"](self.doc.productId).document(self.id)

    def mirror_exists(self) -> bool:
        return self.mirror_ref().get().exists

    def write_mirror(self):
        now = self.db.server_timestamp
        created_at = self.doc.createdAt or now
        updated_at = self.doc.updatedAt or now
        self.mirror_ref().set({
            **self.payload(),
            "reviewId": self.id,
            "createdAt": created_at,
            "updatedAt": updated_at,
        })
        logger.info(f"Wrote mirror of review {self.id} under product {self.doc.productId}")

    def edit(self, rating: int, text: str) -> bool:
        """Update rating and text, then the product copy if it exists.

        Returns:
            True if the product copy was updated as well
        """
        changes = {"rating": rating, "text": text, "updatedAt": self.db.server_timestamp}
        self.get_doc_ref().update(changes)
        self._doc = self.doc.model_copy(update={"rating": rating, "text": text})

        mirror = self.mirror_ref()
        if not mirror.get().exists:
            logger.warning(f"Review {self.id} has no product copy to update")
            return False
        mirror.update(changes)
        return True
