"""Review eligibility, submission and listings."""

from typing import Dict, List, Optional

from google.api_core import exceptions as gcp_exceptions

from sweetshop.apis.Db import Db
from sweetshop.config.loader import AppConfig, get_review_limits
from sweetshop.documents.products.Product import Product
from sweetshop.documents.reviews.Review import Review
from sweetshop.documents.users.UserProfile import log_user_activity
from sweetshop.exceptions import (
    DuplicateError,
    IneligibleError,
    MissingIndexError,
    NotSignedInError,
    PartialWriteError,
    PermissionError,
    ValidationError,
)
from sweetshop.models.firestore_types import OrderDoc, ProductDoc, ReviewDoc
from sweetshop.models.util_types import EligibilityResult, EligibilityState, OrderStatus
from sweetshop.models.view_types import ReviewWithProduct
from sweetshop.store.session import Session
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

ALREADY_REVIEWED_MESSAGE = "You have already reviewed this product."
INELIGIBLE_MESSAGE = "You can only review products you've purchased and received."
ELIGIBILITY_ERROR_MESSAGE = "An error occurred while checking eligibility."
SIGN_IN_MESSAGE = "Please sign in to write a review."

# stored order statuses are not consistently cased
DELIVERED_STATUS_VALUES = ["Delivered", "DELIVERED", "delivered"]


def review_id_for(user_id: str, product_id: str) -> str:
    """Deterministic review id, one per user and product."""
    return f"{user_id}_{product_id}"


class ReviewService:
    """Decides who may review what, and keeps both review copies in step."""

    def __init__(self, session: Optional[Session] = None, config: Optional[AppConfig] = None):
        self.session = session
        self.config = config or {}
        self.db = Db.get_instance()
        self.limits = get_review_limits(self.config)

    # Eligibility
    def _existing_review(self, user_id: str, product_id: str) -> bool:
        snaps = (
            self.db.collections["reviews"]
            .where("userId", "==", user_id)
            .where("productId", "==", product_id)
            .limit(1)
            .get()
        )
        return len(list(snaps)) > 0

    def _delivered_orders(self, user_id: str) -> List[OrderDoc]:
        snaps = (
            self.db.collections["orders"]
            .where("userId", "==", user_id)
            .where("status", "in", DELIVERED_STATUS_VALUES)
            .get()
        )
        orders = []
        for snap in snaps:
            try:
                order = OrderDoc(**{**(snap.to_dict() or {}), "id": snap.id})
            except ValueError as e:
                logger.warning(f"Skipping malformed order {snap.id}: {e}")
                continue
            if order.status == OrderStatus.DELIVERED:
                orders.append(order)
        return orders

    def check_eligibility(self, user_id: Optional[str], product_id: str) -> EligibilityResult:
        """Decide whether a user may review a product.

        A previous review short-circuits to already reviewed. Otherwise the user
        needs a delivered order that contains the product.

        Args:
            user_id: Reviewer uid, None when signed out
            product_id: Product to review

        Returns:
            EligibilityResult with the state and a user-facing message
        """
        if not user_id:
            return EligibilityResult(state=EligibilityState.INELIGIBLE, message=SIGN_IN_MESSAGE)

        collection = "reviews"
        try:
            if self._existing_review(user_id, product_id):
                return EligibilityResult(state=EligibilityState.ALREADY_REVIEWED, message=ALREADY_REVIEWED_MESSAGE)
            collection = "orders"
            orders = self._delivered_orders(user_id)
        except gcp_exceptions.FailedPrecondition as e:
            logger.error(f"Eligibility query on {collection} for {user_id}/{product_id} needs an index: {e}")
            return EligibilityResult(
                state=EligibilityState.MISSING_INDEX,
                message=MissingIndexError(collection).message,
                collection=collection,
            )
        except Exception as e:
            logger.error(f"Eligibility check failed for {user_id}/{product_id}: {e}")
            return EligibilityResult(state=EligibilityState.ERROR, message=ELIGIBILITY_ERROR_MESSAGE)

        for order in orders:
            if order.contains_product(product_id):
                return EligibilityResult(state=EligibilityState.ELIGIBLE, orderId=order.id)

        return EligibilityResult(state=EligibilityState.INELIGIBLE, message=INELIGIBLE_MESSAGE)

    # Submission
    def validate_review(self, user_id: Optional[str], product_id: str, rating, text: str) -> str:
        """Validate review input without touching Firestore.

        Returns:
            The trimmed review text
        """
        if not user_id:
            raise NotSignedInError(SIGN_IN_MESSAGE)
        if not product_id:
            raise ValidationError("Invalid product.", field="productId")
        return self.validate_content(rating, text)

    def validate_content(self, rating, text: str) -> str:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Please select a rating.", field="rating")
        if rating < self.limits["min_rating"] or rating > self.limits["max_rating"]:
            raise ValidationError(
                f"Rating must be between {self.limits['min_rating']} and {self.limits['max_rating']}.",
                field="rating",
            )
        text = (text or "").strip()
        if not text:
            raise ValidationError("Please write a review.", field="text")
        if len(text) > self.limits["max_text_length"]:
            raise ValidationError(
                f"Review must be {self.limits['max_text_length']} characters or fewer.",
                field="text",
            )
        return text

    def _author(self, user_id: str) -> Dict[str, str]:
        name, picture = "", ""
        if self.session is not None and self.session.uid == user_id:
            state = self.session.user.state
            name = state.name or (state.currentUser.email if state.currentUser else "") or ""
            picture = state.profilePic
        return {"userName": name or "Anonymous", "userProfilePic": picture or ""}

    def submit_review(self, user_id: Optional[str], product_id: str, rating, text: str) -> ReviewDoc:
        """Validate, re-check eligibility, then write the review and its product copy.

        Raises:
            ValidationError / NotSignedInError: Before any Firestore call
            IneligibleError: If the user may not review the product
            MissingIndexError: If the eligibility query needs an index
            PartialWriteError: If the product copy failed after the review was written
        """
        text = self.validate_review(user_id, product_id, rating, text)

        eligibility = self.check_eligibility(user_id, product_id)
        if eligibility.state == EligibilityState.MISSING_INDEX:
            raise MissingIndexError(eligibility.collection or "orders", eligibility.message)
        if eligibility.state != EligibilityState.ELIGIBLE:
            raise IneligibleError(eligibility.message or INELIGIBLE_MESSAGE, eligibility.state.value)

        review = Review(review_id_for(user_id, product_id), {
            "userId": user_id,
            "productId": product_id,
            "rating": rating,
            "text": text,
            **self._author(user_id),
        })

        try:
            review.write()
        except gcp_exceptions.AlreadyExists:
            raise DuplicateError("Review", review.id, ALREADY_REVIEWED_MESSAGE)
        except Exception as e:
            raise Db.translate_error(e, "reviews")

        try:
            review.write_mirror()
        except Exception as e:
            mirror_path = f"products/{product_id}/reviews/{review.id}"
            logger.error(f"Review {review.id} written but product copy failed: {e}")
            log_user_activity(user_id, "review_mirror_failed", {
                "reviewId": review.id,
                "productId": product_id,
                "error": str(e),
            }, db=self.db)
            raise PartialWriteError(
                "submit_review",
                completed=[f"reviews/{review.id}"],
                failed=mirror_path,
                cause=str(e),
            )

        log_user_activity(user_id, "review_submitted", {"reviewId": review.id, "productId": product_id}, db=self.db)
        logger.info(f"User {user_id} reviewed product {product_id}")
        return review.doc

    def repair_mirrors(self, user_id: str) -> int:
        """Recreate missing product copies of a user's reviews.

        Returns:
            Number of copies written
        """
        repaired = 0
        for snap in self.db.collections["reviews"].where("userId", "==", user_id).get():
            try:
                review = Review(snap.id, {**(snap.to_dict() or {}), "id": snap.id})
            except ValueError as e:
                logger.warning(f"Skipping malformed review {snap.id}: {e}")
                continue
            if review.mirror_exists():
                continue
            review.write_mirror()
            repaired += 1

        if repaired:
            log_user_activity(user_id, "review_mirrors_repaired", {"count": repaired}, db=self.db)
        logger.info(f"Repaired {repaired} review copies for {user_id}")
        return repaired

    def edit_review(self, user_id: Optional[str], review_id: str, rating, text: str) -> ReviewDoc:
        """Change rating and text of the user's own review."""
        if not user_id:
            raise NotSignedInError(SIGN_IN_MESSAGE)
        if not review_id:
            raise ValidationError("Invalid review.", field="reviewId")
        text = self.validate_content(rating, text)

        try:
            review = Review(review_id)
        except Exception as e:
            raise Db.translate_error(e, "reviews")

        if not review.validate_permissions(user_id):
            raise PermissionError("You can only edit your own reviews.", resource=f"reviews/{review_id}")

        try:
            review.edit(rating, text)
        except Exception as e:
            raise Db.translate_error(e, "reviews")

        log_user_activity(user_id, "review_edited", {"reviewId": review_id}, db=self.db)
        return review.doc

    # Listings
    def _user_reviews(self, user_id: str) -> List[ReviewDoc]:
        try:
            snaps = (
                self.db.collections["reviews"]
                .where("userId", "==", user_id)
                .order_by("createdAt", direction="DESCENDING")
                .get()
            )
        except Exception as e:
            raise Db.translate_error(e, "reviews")

        reviews = []
        for snap in snaps:
            try:
                reviews.append(ReviewDoc(**{**(snap.to_dict() or {}), "id": snap.id}))
            except ValueError as e:
                logger.warning(f"Skipping malformed review {snap.id}: {e}")
        return reviews

    def list_user_reviews(self, user_id: str) -> List[ReviewWithProduct]:
        """The user's reviews, newest first, each with its product. Reviews of deleted products are left out."""
        results = []
        for review in self._user_reviews(user_id):
            product = Product.find(review.productId)
            if product is None:
                continue
            results.append(ReviewWithProduct(review=review, product=product.doc))
        return results

    def reviewable_products(self, user_id: str) -> List[ProductDoc]:
        """Products from the user's delivered orders that they have not reviewed yet."""
        try:
            orders = self._delivered_orders(user_id)
        except Exception as e:
            raise Db.translate_error(e, "orders")

        reviewed = {review.productId for review in self._user_reviews(user_id)}
        product_ids: List[str] = []
        for order in orders:
            for item in order.items:
                if item.productId not in reviewed and item.productId not in product_ids:
                    product_ids.append(item.productId)

        products = []
        for product_id in product_ids:
            product = Product.find(product_id)
            if product is not None:
                products.append(product.doc)
        return products

    def product_reviews(self, product_id: str, limit: int = 50) -> List[ReviewDoc]:
        product = Product.find(product_id)
        if product is None:
            return []
        return product.get_reviews(limit=limit)
