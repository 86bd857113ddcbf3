"""End-to-end storefront flows against the Firestore emulator."""

from unittest.mock import MagicMock

import pytest

from sweetshop.apis.Db import Db
from sweetshop.app import create_app
from sweetshop.models.util_types import EligibilityState
from sweetshop.services.review_service import review_id_for
from tests.util.fake_identity import FakeIdentity

UID = "test-user-123"


@pytest.fixture
def app(firestore_emulator):
    Db.reset_instance()
    firestore_emulator.document("products/p1").set({
        "name": "Chocolate Cake", "price": 250, "type": "Cakes & Pastries",
        "image": "/images/cake.jpg", "showOnHome": True,
    })
    storefront = create_app(client=firestore_emulator, identity=FakeIdentity(UID), uploader=MagicMock())
    yield storefront
    Db.reset_instance()


@pytest.mark.integration
class TestStorefrontFlow:

    def test_sign_up_then_order_then_review(self, app, firestore_emulator):
        assert app.sign_up("Amira", "amira@example.com", "secret1").uid == UID
        assert firestore_emulator.document(f"users/{UID}").get().to_dict()["name"] == "Amira"

        app.add_to_cart({"id": "p1", "name": "Chocolate Cake"}, 2)
        order = app.place_order()
        assert order is not None
        assert [o.id for o in app.order_history()] == [order.id]

        # fulfilment happens outside the storefront
        firestore_emulator.document(f"orders/{order.id}").update({"status": "Delivered"})
        assert app.review_eligibility("p1").state == EligibilityState.ELIGIBLE

        review = app.submit_review("p1", 5, "Best cake in Cairo")
        review_id = review_id_for(UID, "p1")
        assert review.id == review_id
        assert firestore_emulator.document(f"products/p1/reviews/{review_id}").get().exists
        assert app.review_eligibility("p1").state == EligibilityState.ALREADY_REVIEWED

    def test_wishlist_survives_sign_out(self, app, firestore_emulator):
        firestore_emulator.document(f"users/{UID}").set({"uid": UID, "name": "Amira"})
        app.sign_in("amira@example.com", "secret1")
        app.add_to_wishlist({"id": "p1", "name": "Chocolate Cake", "price": 250})

        app.sign_out()
        assert not app.is_in_wishlist("p1")

        app.sign_in("amira@example.com", "secret1")
        assert app.is_in_wishlist("p1")
        assert app.clear_wishlist() == 1
        assert list(firestore_emulator.collection(f"users/{UID}/wishlist").stream()) == []
