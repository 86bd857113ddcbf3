"""Tests for the wishlist synchronizer."""

import pytest
from google.api_core import exceptions as gcp_exceptions

from sweetshop.exceptions import NotSignedInError, PartialWriteError, PermissionError, ValidationError
from sweetshop.models.firestore_types import FullUser, SessionUser, WishlistItemDoc
from sweetshop.services import wishlist_service
from sweetshop.services.wishlist_service import WishlistService
from sweetshop.store import wishlist_slice

CAKE = {"id": "p1", "name": "Chocolate Cake", "price": "250", "image": "/images/cake.jpg"}


@pytest.fixture
def service(firestore_client, signed_in, config):
    return WishlistService(signed_in, config, origin="https://shop.example.com/")


class TestWishlistAdd:

    def test_add_writes_then_updates_state(self, service, firestore_client, test_user_id):
        item = service.add(CAKE)

        stored = firestore_client.data(f"users/{test_user_id}/wishlist/p1")
        assert stored["name"] == "Chocolate Cake"
        assert stored["price"] == 250.0
        assert stored["image"] == "https://shop.example.com/images/cake.jpg"
        assert stored["addedAt"] is not None
        assert item.id == "p1"
        assert service.is_in_wishlist("p1")

    def test_signed_out_add_is_rejected(self, firestore_client, session, config):
        with pytest.raises(NotSignedInError, match="sign in to add items"):
            WishlistService(session, config).add(CAKE)
        assert firestore_client.writes() == []

    def test_product_without_id_is_rejected(self, service, firestore_client):
        with pytest.raises(ValidationError, match="Invalid product data."):
            service.add({"name": "No id"})
        assert firestore_client.writes() == []

    def test_failed_write_leaves_state_unchanged(self, service, firestore_client, signed_in):
        firestore_client.fail("set", "users/", gcp_exceptions.ServiceUnavailable("offline"))
        before = signed_in.wishlist.state
        with pytest.raises(gcp_exceptions.ServiceUnavailable):
            service.add(CAKE)
        assert signed_in.wishlist.state is before

    def test_result_after_user_change_is_discarded(self, service, firestore_client, signed_in):
        other = FullUser(user=SessionUser(uid="someone-else"), name="Other")
        firestore_client.on("set", "users/", lambda: signed_in.sign_in(other))
        service.add(CAKE)
        assert signed_in.wishlist.state.items == ()

    @pytest.mark.parametrize("product, expected", [
        ({"id": "p", "imageUrl": "https://cdn.example.com/x.png"}, "https://cdn.example.com/x.png"),
        ({"id": "p", "image": "img/x.png"}, "https://shop.example.com/img/x.png"),
        ({"id": "p"}, "https://via.placeholder.com/150?text=No+Image"),
    ])
    def test_image_resolution(self, service, product, expected):
        assert service.resolve_image(product) == expected


class TestWishlistRemove:

    def test_remove_then_lookup_needs_no_read(self, service, firestore_client):
        service.add(CAKE)
        service.remove("p1")
        reads = len(firestore_client.reads())

        assert service.is_in_wishlist("p1") is False
        assert len(firestore_client.reads()) == reads

    def test_remove_when_signed_out_is_a_no_op(self, firestore_client, session, config):
        assert WishlistService(session, config).remove("p1") is False
        assert firestore_client.log == []

    def test_toggle(self, service):
        assert service.toggle(CAKE) is True
        assert service.toggle(CAKE) is False
        assert not service.is_in_wishlist("p1")


class TestWishlistLoad:

    def test_load_replaces_local_state(self, service, firestore_client, signed_in, test_user_id):
        firestore_client.seed(f"users/{test_user_id}/wishlist/p2", {"name": "Cupcake", "price": "50"})
        firestore_client.seed(f"users/{test_user_id}/wishlist/p3", {"price": 10})
        signed_in.wishlist.dispatch(wishlist_slice.add_to_wishlist(WishlistItemDoc(id="stale")))

        items = service.load()

        assert [item.id for item in items] == ["p2", "p3"]
        assert items[1].name == "Unknown Product"
        assert [item.id for item in signed_in.wishlist.state.items] == ["p2", "p3"]
        assert signed_in.wishlist.state.loading is False

    def test_load_migrates_legacy_items(self, service, firestore_client, test_user_id):
        firestore_client.seed(f"wishlists/{test_user_id}/items/p1", {"name": "Old Cake", "price": 100})
        firestore_client.seed(f"wishlists/{test_user_id}/items/p2", {"name": "Old Cupcake", "price": 40})
        firestore_client.seed(f"users/{test_user_id}/wishlist/p2", {"name": "Newer Cupcake", "price": 45})

        items = {item.id: item for item in service.load()}

        assert items["p1"].name == "Old Cake"
        assert items["p2"].name == "Newer Cupcake"
        assert firestore_client.paths(f"wishlists/{test_user_id}") == []

    def test_denied_legacy_path_still_loads_wishlist(self, service, firestore_client, signed_in, test_user_id):
        firestore_client.seed(f"users/{test_user_id}/wishlist/p1", {"name": "Chocolate Cake", "price": 250})
        firestore_client.fail("query", "wishlists/", gcp_exceptions.PermissionDenied("rules"))

        items = service.load()

        assert [item.id for item in items] == ["p1"]
        assert [item.id for item in signed_in.wishlist.state.items] == ["p1"]
        assert signed_in.wishlist.state.error is None

    def test_load_error_is_recorded(self, service, firestore_client, signed_in):
        firestore_client.fail("query", "users/", gcp_exceptions.PermissionDenied("Missing or insufficient permissions."))
        with pytest.raises(PermissionError):
            service.load()
        assert signed_in.wishlist.state.error == "Missing or insufficient permissions."


class TestWishlistClear:

    def seed(self, firestore_client, uid, count):
        for index in range(count):
            firestore_client.seed(f"users/{uid}/wishlist/p{index}", {"name": f"Item {index}", "price": 1})

    def test_clear_deletes_remote_then_local(self, service, firestore_client, signed_in, test_user_id):
        self.seed(firestore_client, test_user_id, 3)
        service.load()

        assert service.clear() == 3
        assert firestore_client.paths(f"users/{test_user_id}/wishlist") == []
        assert signed_in.wishlist.state.items == ()

    def test_clear_is_chunked(self, service, firestore_client, test_user_id, monkeypatch):
        monkeypatch.setattr(wishlist_service, "BATCH_LIMIT", 2)
        self.seed(firestore_client, test_user_id, 5)
        assert service.clear() == 5
        assert len(firestore_client.ops("commit")) == 3

    def test_partial_failure_keeps_local_state(self, service, firestore_client, signed_in, test_user_id, monkeypatch):
        monkeypatch.setattr(wishlist_service, "BATCH_LIMIT", 2)
        self.seed(firestore_client, test_user_id, 4)
        service.load()
        commits = []

        def second_commit_fails():
            commits.append(1)
            if len(commits) == 2:
                raise gcp_exceptions.ServiceUnavailable("offline")

        firestore_client.on("commit", "batch", second_commit_fails)

        with pytest.raises(PartialWriteError) as exc_info:
            service.clear()
        assert len(exc_info.value.details["completed"]) == 2
        assert len(signed_in.wishlist.state.items) == 4
