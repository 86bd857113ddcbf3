"""Tests for review eligibility, submission and the per-product copies."""

import pytest
from google.api_core import exceptions as gcp_exceptions

from sweetshop.exceptions import (
    DuplicateError,
    IneligibleError,
    MissingIndexError,
    NotSignedInError,
    PartialWriteError,
    PermissionError,
    ValidationError,
)
from sweetshop.models.util_types import EligibilityState
from sweetshop.services.review_service import (
    ALREADY_REVIEWED_MESSAGE,
    INELIGIBLE_MESSAGE,
    ReviewService,
    review_id_for,
)

UID = "test-user-123"


@pytest.fixture
def service(firestore_client, signed_in, config):
    return ReviewService(signed_in, config)


@pytest.fixture
def delivered_order(firestore_client, seed_products):
    firestore_client.seed("orders/o1", {
        "userId": UID,
        "status": "DELIVERED",
        "items": [{"productId": "p1", "quantity": 1, "price": 250}],
        "totalAmount": 250,
    })


class TestEligibility:

    def test_signed_out_is_ineligible(self, service):
        result = service.check_eligibility(None, "p1")
        assert result.state == EligibilityState.INELIGIBLE

    def test_delivered_order_with_product_is_eligible(self, service, delivered_order):
        result = service.check_eligibility(UID, "p1")
        assert result.state == EligibilityState.ELIGIBLE
        assert result.orderId == "o1"
        assert result.can_review

    def test_status_casing_is_normalized(self, service, firestore_client, seed_products):
        firestore_client.seed("orders/o2", {"userId": UID, "status": "delivered", "items": [{"productId": "p2"}]})
        assert service.check_eligibility(UID, "p2").state == EligibilityState.ELIGIBLE

    def test_undelivered_order_is_ineligible(self, service, firestore_client, seed_products):
        firestore_client.seed("orders/o3", {"userId": UID, "status": "Shipped", "items": [{"productId": "p2"}]})
        result = service.check_eligibility(UID, "p2")
        assert result.state == EligibilityState.INELIGIBLE
        assert result.message == INELIGIBLE_MESSAGE

    def test_missing_index(self, service, firestore_client, delivered_order):
        firestore_client.indexed = False
        result = service.check_eligibility(UID, "p1")
        assert result.state == EligibilityState.MISSING_INDEX
        assert result.message.startswith("Database requires a new index")
        assert result.collection == "reviews"

    def test_missing_order_index_names_orders(self, service, firestore_client, delivered_order):
        firestore_client.fail("query", "orders", gcp_exceptions.FailedPrecondition("The query requires an index."))
        result = service.check_eligibility(UID, "p1")
        assert result.state == EligibilityState.MISSING_INDEX
        assert result.collection == "orders"

    def test_other_errors(self, service, firestore_client, delivered_order):
        firestore_client.fail("query", "orders", gcp_exceptions.ServiceUnavailable("offline"))
        assert service.check_eligibility(UID, "p1").state == EligibilityState.ERROR


class TestSubmitReview:
    """Validation, eligibility and both writes."""

    @pytest.mark.parametrize("rating, text, field", [
        (0, "Lovely", "rating"),
        (6, "Lovely", "rating"),
        (True, "Lovely", "rating"),
        ("5", "Lovely", "rating"),
        (5, "   ", "text"),
        (5, "x" * 501, "text"),
    ])
    def test_invalid_input_is_rejected_before_any_call(self, service, firestore_client, rating, text, field):
        with pytest.raises(ValidationError) as exc_info:
            service.submit_review(UID, "p1", rating, text)
        assert exc_info.value.details["field"] == field
        assert firestore_client.log == []

    def test_configured_limits_apply_before_any_call(self, firestore_client, signed_in):
        service = ReviewService(signed_in, {"reviews": {"max_rating": 4, "max_text_length": 10}})
        with pytest.raises(ValidationError, match="between 1 and 4"):
            service.submit_review(UID, "p1", 5, "Great")
        with pytest.raises(ValidationError, match="10 characters"):
            service.submit_review(UID, "p1", 4, "Great cake, really")
        assert firestore_client.log == []

    def test_signed_out_is_rejected_before_any_call(self, service, firestore_client):
        with pytest.raises(NotSignedInError):
            service.submit_review(None, "p1", 5, "Lovely")
        assert firestore_client.log == []

    def test_submit_writes_review_and_copy(self, service, firestore_client, delivered_order):
        review = service.submit_review(UID, "p1", 5, "  Best cake in Cairo  ")

        review_id = review_id_for(UID, "p1")
        stored = firestore_client.data(f"reviews/{review_id}")
        copy = firestore_client.data(f"products/p1/reviews/{review_id}")
        assert stored["text"] == "Best cake in Cairo"
        assert stored["userName"] == "Amira"
        assert copy["reviewId"] == review_id
        assert copy["rating"] == 5
        assert review.id == review_id

    def test_second_submission_is_already_reviewed(self, service, delivered_order):
        service.submit_review(UID, "p1", 5, "Great")
        assert service.check_eligibility(UID, "p1").state == EligibilityState.ALREADY_REVIEWED
        with pytest.raises(IneligibleError, match=ALREADY_REVIEWED_MESSAGE):
            service.submit_review(UID, "p1", 4, "Again")

    def test_concurrent_duplicate_is_rejected(self, service, firestore_client, delivered_order):
        # another tab wrote the same review between the check and the write
        firestore_client.on("create", "reviews/", lambda: firestore_client.seed(
            f"reviews/{review_id_for(UID, 'p1')}", {"userId": UID, "productId": "p1", "rating": 3, "text": "x"}))
        with pytest.raises(DuplicateError, match=ALREADY_REVIEWED_MESSAGE):
            service.submit_review(UID, "p1", 5, "Great")

    def test_ineligible_submission_writes_nothing(self, service, firestore_client, seed_products):
        with pytest.raises(IneligibleError):
            service.submit_review(UID, "p2", 5, "Never bought it")
        assert firestore_client.writes() == []

    def test_missing_index_raises(self, service, firestore_client, delivered_order):
        firestore_client.indexed = False
        with pytest.raises(MissingIndexError) as exc_info:
            service.submit_review(UID, "p1", 5, "Great")
        assert exc_info.value.details["collection"] == "reviews"

    def test_copy_failure_is_reported_and_repairable(self, service, firestore_client, delivered_order):
        firestore_client.fail("set", "products/p1/reviews", gcp_exceptions.ServiceUnavailable("offline"), times=1)

        with pytest.raises(PartialWriteError) as exc_info:
            service.submit_review(UID, "p1", 5, "Great")

        review_id = review_id_for(UID, "p1")
        assert exc_info.value.details["completed"] == [f"reviews/{review_id}"]
        assert firestore_client.data(f"reviews/{review_id}") is not None
        assert firestore_client.data(f"products/p1/reviews/{review_id}") is None
        actions = [data["action"] for path, data in firestore_client.docs.items() if "/activities/" in path]
        assert "review_mirror_failed" in actions

        assert service.repair_mirrors(UID) == 1
        assert firestore_client.data(f"products/p1/reviews/{review_id}")["text"] == "Great"
        assert service.repair_mirrors(UID) == 0


class TestEditReview:

    def test_owner_can_edit(self, service, firestore_client, delivered_order):
        review = service.submit_review(UID, "p1", 3, "Okay")
        edited = service.edit_review(UID, review.id, 4, "Better the second time")

        assert edited.rating == 4
        assert firestore_client.data(f"reviews/{review.id}")["text"] == "Better the second time"
        assert firestore_client.data(f"products/p1/reviews/{review.id}")["rating"] == 4

    def test_other_users_cannot_edit(self, service, firestore_client, delivered_order):
        review = service.submit_review(UID, "p1", 3, "Okay")
        with pytest.raises(PermissionError):
            service.edit_review("intruder", review.id, 1, "Bad")
        assert firestore_client.data(f"reviews/{review.id}")["rating"] == 3

    def test_edit_validates_first(self, service, firestore_client):
        with pytest.raises(ValidationError):
            service.edit_review(UID, "r1", 9, "Too high")
        assert firestore_client.log == []


class TestListings:

    def test_user_reviews_skip_deleted_products(self, service, firestore_client, seed_products):
        firestore_client.seed("reviews/r1", {"userId": UID, "productId": "p1", "rating": 5, "text": "a",
                                             "createdAt": "2024-02-01T00:00:00+00:00"})
        firestore_client.seed("reviews/r2", {"userId": UID, "productId": "gone", "rating": 4, "text": "b",
                                             "createdAt": "2024-03-01T00:00:00+00:00"})
        results = service.list_user_reviews(UID)
        assert [r.review.id for r in results] == ["r1"]
        assert results[0].product.name == "Chocolate Cake"

    def test_reviewable_products(self, service, firestore_client, delivered_order):
        firestore_client.seed("orders/o2", {"userId": UID, "status": "Delivered",
                                            "items": [{"productId": "p1"}, {"productId": "p2"}]})
        assert [p.id for p in service.reviewable_products(UID)] == ["p1", "p2"]
        service.submit_review(UID, "p1", 5, "Great")
        assert [p.id for p in service.reviewable_products(UID)] == ["p2"]

    def test_product_reviews_read_the_copy(self, service, delivered_order):
        service.submit_review(UID, "p1", 5, "Great")
        reviews = service.product_reviews("p1")
        assert [r.text for r in reviews] == ["Great"]
        assert service.product_reviews("missing") == []
