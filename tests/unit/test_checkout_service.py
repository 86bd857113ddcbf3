"""Tests for cart pricing, coupons, order placement and order history."""

import pytest

from sweetshop.exceptions import MissingIndexError, NotFoundError, NotSignedInError, PermissionError, ValidationError
from sweetshop.models.firestore_types import Address, CartItem
from sweetshop.models.util_types import OrderStatus
from sweetshop.services.catalog_service import CatalogService
from sweetshop.services.checkout_service import CheckoutService, cart_details, subtotal
from sweetshop.services.order_service import OrderService
from sweetshop.store import cart_slice

UID = "test-user-123"


@pytest.fixture
def checkout(firestore_client, seed_products, signed_in, cache, config):
    return CheckoutService(signed_in, CatalogService(cache, config), config)


class TestCartDetails:

    def test_unknown_products_are_dropped(self, checkout):
        products = checkout.catalog.products_by_id()
        lines = cart_details([CartItem(productId="p2", quantity=2), CartItem(productId="gone")], products)
        assert [line.product.id for line in lines] == ["p2"]
        assert subtotal(lines) == 100.0

    def test_summary_is_formatted(self, checkout):
        checkout.add_to_cart("p2", 2)
        summary = checkout.summary()
        assert summary.formatted() == {"subtotal": "100.00 EGP", "discount": "0.00 EGP", "total": "100.00 EGP"}
        assert summary.item_count == 2

    def test_summary_uses_configured_currency(self, firestore_client, seed_products, signed_in, cache, config):
        configured = {**config, "currency": {"code": "USD", "decimals": 0}}
        checkout = CheckoutService(signed_in, CatalogService(cache, configured), configured)
        checkout.add_to_cart("p1", 2)
        assert checkout.summary().formatted()["total"] == "500 USD"

    def test_quantity_below_one_is_rejected(self, checkout, signed_in):
        checkout.add_to_cart("p1")
        with pytest.raises(ValidationError):
            checkout.update_quantity("p1", 0)
        assert cart_slice.quantity_of(signed_in.cart.state, "p1") == 1


class TestCoupons:

    def test_percent_coupon_is_capped(self, checkout):
        checkout.add_to_cart("p1", 10)
        checkout.apply_coupon("sweet10")
        summary = checkout.summary()
        assert summary.subtotal == 2500.0
        assert summary.discount == 200.0
        assert summary.total == 2300.0

    def test_minimum_order_value(self, checkout, signed_in):
        checkout.add_to_cart("p2", 2)
        with pytest.raises(ValidationError):
            checkout.apply_coupon("FLAT50")
        assert signed_in.cart.state.coupon is None

    def test_unknown_coupon(self, checkout):
        with pytest.raises(NotFoundError):
            checkout.apply_coupon("FREECAKE")


class TestPlaceOrder:

    def test_order_is_written_and_cart_trimmed(self, checkout, firestore_client, signed_in):
        checkout.add_to_cart("p1", 2)
        checkout.add_to_cart("gone", 1)
        checkout.apply_coupon("SWEET10")

        order = checkout.place_order(Address(line1="12 Tahrir St", city="Cairo", pin="11511"))

        stored = firestore_client.data(f"orders/{order.id}")
        assert stored["userId"] == UID
        assert stored["status"] == "Placed"
        assert stored["totalAmount"] == 450.0
        assert stored["couponCode"] == "SWEET10"
        assert stored["orderDate"] is not None
        assert [item.productId for item in signed_in.cart.state.items] == ["gone"]
        assert signed_in.cart.state.coupon is None
        assert order.status == OrderStatus.PLACED

    def test_signed_out(self, firestore_client, seed_products, session, cache, config):
        checkout = CheckoutService(session, CatalogService(cache, config), config)
        checkout.add_to_cart("p1")
        with pytest.raises(NotSignedInError):
            checkout.place_order()

    def test_empty_cart(self, checkout, firestore_client):
        with pytest.raises(ValidationError, match="empty"):
            checkout.place_order()
        assert firestore_client.paths("orders/") == []

    def test_incomplete_address_is_rejected(self, checkout, firestore_client):
        checkout.add_to_cart("p1")
        with pytest.raises(ValidationError, match="shipping address") as exc_info:
            checkout.place_order(Address(line1="12 Tahrir St", city="Cairo"))
        assert exc_info.value.details["field"] == "shipping"
        assert firestore_client.paths("orders/") == []


class TestOrderService:

    def seed_orders(self, firestore_client):
        firestore_client.seed("orders/o1", {"userId": UID, "status": "DELIVERED", "orderDate": "2024-01-05T10:00:00Z",
                                            "items": [{"productId": "p1"}],
                                            "tracking": {"code": "EG123", "carrier": "Aramex"}})
        firestore_client.seed("orders/o2", {"userId": UID, "status": "on hold", "orderDate": "2024-02-05T10:00:00Z",
                                            "items": [{"productId": "p2"}], "total": "99.5"})
        firestore_client.seed("orders/o3", {"userId": "someone-else", "status": "Placed",
                                            "orderDate": "2024-03-05T10:00:00Z", "items": []})

    def test_history_is_newest_first(self, firestore_client):
        self.seed_orders(firestore_client)
        orders = OrderService().order_history(UID)
        assert [o.id for o in orders] == ["o2", "o1"]
        assert orders[0].status is None
        assert OrderService.status_label(orders[0]) == "on hold"
        assert orders[0].totalAmount == 99.5
        assert OrderService.status_label(orders[1]) == "Delivered"

    def test_tracked_orders(self, firestore_client):
        self.seed_orders(firestore_client)
        assert [o.id for o in OrderService().tracked_orders(UID)] == ["o1"]

    def test_missing_index(self, firestore_client):
        firestore_client.indexed = False
        with pytest.raises(MissingIndexError):
            OrderService().order_history(UID)

    def test_get_order_checks_owner(self, firestore_client):
        self.seed_orders(firestore_client)
        assert OrderService().get_order(UID, "o1").id == "o1"
        with pytest.raises(PermissionError):
            OrderService().get_order(UID, "o3")
