"""Cart pricing, coupons and order placement."""

from typing import Dict, Iterable, List, Optional

from sweetshop.apis.Db import Db
from sweetshop.config.loader import AppConfig, get_coupons, get_currency_code, get_currency_decimals
from sweetshop.documents.orders.OrderFactory import OrderFactory
from sweetshop.documents.users.UserProfile import log_user_activity
from sweetshop.exceptions import NotFoundError, NotSignedInError, ValidationError
from sweetshop.models.firestore_types import Address, CartItem, Coupon, OrderDoc, OrderItem, ProductDoc
from sweetshop.models.view_types import CartLine, CheckoutSummary
from sweetshop.services.catalog_service import CatalogService
from sweetshop.store import cart_slice
from sweetshop.store.session import Session
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


def cart_details(cart_items: Iterable[CartItem], products: Dict[str, ProductDoc]) -> List[CartLine]:
    """Join cart lines with their products. Lines for unknown products are dropped."""
    return [
        CartLine(product=products[item.productId], quantity=item.quantity)
        for item in cart_items
        if item.productId in products
    ]


def subtotal(lines: Iterable[CartLine]) -> float:
    return round(sum(line.line_total for line in lines), 2)


class CheckoutService:

    def __init__(self, session: Session, catalog: CatalogService, config: Optional[AppConfig] = None):
        self.session = session
        self.catalog = catalog
        self.config = config or {}
        self.db = Db.get_instance()

    @property
    def cart(self):
        return self.session.cart

    # Cart actions
    def add_to_cart(self, product_id: str, quantity: int = 1):
        if not product_id:
            raise ValidationError("Invalid product data.", field="productId")
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be at least 1.", field="quantity")
        self.cart.dispatch(cart_slice.add_to_cart(product_id, quantity))

    def update_quantity(self, product_id: str, quantity: int):
        """Set a line's quantity. Values below one are rejected and leave the cart unchanged."""
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be at least 1.", field="quantity")
        self.cart.dispatch(cart_slice.update_quantity(product_id, quantity))

    def remove_from_cart(self, product_id: str):
        self.cart.dispatch(cart_slice.remove_from_cart(product_id))

    def clear_cart(self):
        self.cart.dispatch(cart_slice.clear_cart())

    # Coupons
    def find_coupon(self, code: str) -> Optional[Coupon]:
        code = (code or "").strip().upper()
        for coupon in get_coupons(self.config):
            if coupon["code"].strip().upper() == code:
                return Coupon(
                    code=code,
                    discountType=coupon.get("discount_type", "percent"),
                    value=coupon["value"],
                    maxDiscount=coupon.get("max_discount"),
                    minOrderValue=coupon.get("min_order_value", 0.0),
                )
        return None

    def apply_coupon(self, code: str) -> Coupon:
        coupon = self.find_coupon(code)
        if coupon is None:
            raise NotFoundError("Coupon", (code or "").strip().upper())
        summary = self.summary()
        if summary.subtotal < coupon.minOrderValue:
            raise ValidationError(
                f"Coupon {coupon.code} needs an order of at least {coupon.minOrderValue:.2f}.",
                field="coupon",
            )
        self.cart.dispatch(cart_slice.apply_coupon(coupon))
        return coupon

    def remove_coupon(self):
        self.cart.dispatch(cart_slice.remove_coupon())

    # Pricing
    def summary(self, products: Optional[Dict[str, ProductDoc]] = None) -> CheckoutSummary:
        """Price the current cart.

        Args:
            products: Optional product lookup; defaults to the cached catalog
        """
        state = self.cart.state
        products = self.catalog.products_by_id() if products is None else products
        lines = cart_details(state.items, products)
        amount = subtotal(lines)
        discount = state.coupon.discount_for(amount) if state.coupon else 0.0
        return CheckoutSummary(
            lines=lines,
            subtotal=amount,
            discount=discount,
            coupon=state.coupon,
            currency=get_currency_code(self.config),
            decimals=get_currency_decimals(self.config),
        )

    def place_order(self, shipping: Optional[Address] = None) -> OrderDoc:
        """Write an order for the current cart and drop the purchased lines from it.

        Raises:
            NotSignedInError: If nobody is signed in
            ValidationError: If the cart has nothing purchasable
        """
        uid = self.session.uid
        if not uid:
            raise NotSignedInError("Please sign in to place your order.")

        summary = self.summary()
        if not summary.lines:
            raise ValidationError("Your cart is empty.", field="items")
        if shipping is not None and not shipping.is_complete:
            raise ValidationError("Please complete your shipping address.", field="shipping")

        items = [
            OrderItem(
                productId=line.product.id,
                name=line.product.name,
                quantity=line.quantity,
                price=line.product.price,
            )
            for line in summary.lines
        ]

        generation = self.session.generation
        try:
            order = OrderFactory(uid).create(
                items,
                summary.total,
                shipping=shipping,
                coupon_code=summary.coupon.code if summary.coupon else None,
            )
        except Exception as e:
            raise Db.translate_error(e, "orders")

        if self.session.is_current(generation):
            self.cart.dispatch(cart_slice.remove_purchased_from_cart([item.productId for item in items]))
            self.cart.dispatch(cart_slice.remove_coupon())

        log_user_activity(uid, "order_placed", {"orderId": order.id, "total": summary.total}, db=self.db)
        return order.doc
