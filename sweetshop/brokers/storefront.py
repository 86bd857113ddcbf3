"""User-facing storefront handlers.

Each handler calls into a service and routes failures to the notifier, the
way page components show toasts. Handlers never raise.
"""

from typing import Dict, List, Optional, Union

from sweetshop.models.firestore_types import (
    Address,
    FullUser,
    IdentityUser,
    OrderDoc,
    PaymentMethod,
    ProductDoc,
    ReviewDoc,
    UserProfileDoc,
    WishlistItemDoc,
)
from sweetshop.models.util_types import EligibilityResult
from sweetshop.models.view_types import CheckoutSummary, ReviewWithProduct
from sweetshop.services.auth_service import AuthService
from sweetshop.services.catalog_service import CatalogService
from sweetshop.services.checkout_service import CheckoutService
from sweetshop.services.order_service import OrderService
from sweetshop.services.profile_service import ProfileService
from sweetshop.services.review_service import ReviewService
from sweetshop.services.wishlist_service import WishlistService
from sweetshop.store.session import Session
from sweetshop.util.handler_wrapper import user_action
from sweetshop.util.logger import get_logger
from sweetshop.util.notifier import Notifier

logger = get_logger(__name__)


class Storefront:
    """Entry point for the presentation layer."""

    def __init__(self, session: Session, notifier: Notifier, auth: AuthService, catalog: CatalogService,
                 wishlist: WishlistService, reviews: ReviewService, orders: OrderService,
                 checkout: CheckoutService, profile: ProfileService):
        self.session = session
        self.notifier = notifier
        self.auth = auth
        self.catalog = catalog
        self.wishlist = wishlist
        self.reviews = reviews
        self.orders = orders
        self.checkout = checkout
        self.profile = profile

    @property
    def uid(self) -> Optional[str]:
        return self.session.uid

    # Auth
    @user_action(success_message="Sign in successful!")
    def sign_in(self, email: str, password: str) -> Optional[IdentityUser]:
        user = self.auth.sign_in_with_email(email, password)
        self._after_sign_in()
        return user

    @user_action(success_message="Sign up successful!")
    def sign_up(self, name: str, email: str, password: str) -> Optional[IdentityUser]:
        user = self.auth.sign_up_with_email(name, email, password)
        self._after_sign_in()
        return user

    @user_action(success_message="Sign in successful!")
    def sign_in_with_provider(self, provider_id: str, id_token: Optional[str] = None,
                              access_token: Optional[str] = None) -> Optional[IdentityUser]:
        user = self.auth.sign_in_with_provider(provider_id, id_token=id_token, access_token=access_token)
        self._after_sign_in()
        return user

    @user_action()
    def restore_session(self, id_token: str) -> Optional[IdentityUser]:
        user = self.auth.restore_session(id_token)
        self._after_sign_in()
        return user

    @user_action(success_message="You have been signed out.")
    def sign_out(self):
        self.auth.sign_out()

    def _after_sign_in(self):
        try:
            self.wishlist.load()
        except Exception as e:
            logger.warning(f"Wishlist load after sign-in failed: {e}")
            self.notifier.warning("Failed to load your wishlist.")

        # copies left behind by an earlier partial review write
        try:
            self.reviews.repair_mirrors(self.uid)
        except Exception as e:
            logger.warning(f"Review copy repair after sign-in failed: {e}")

    def close(self):
        self.auth.close()

    @property
    def current_user(self) -> Optional[FullUser]:
        state = self.session.user.state
        if state.currentUser is None:
            return None
        return FullUser(user=state.currentUser, name=state.name, profilePic=state.profilePic)

    # Catalog
    @user_action("Failed to load products. Please try again.", default=[])
    def products(self) -> List[ProductDoc]:
        return self.catalog.list_products()

    @user_action("Failed to load products. Please try again.", default=[])
    def home_products(self) -> List[ProductDoc]:
        return self.catalog.home_products()

    @user_action("Failed to load products. Please try again.", default={})
    def categories(self) -> Dict[str, List[ProductDoc]]:
        return self.catalog.categorized()

    @user_action("Failed to load product. Please try again.")
    def product(self, product_id: str) -> Optional[ProductDoc]:
        return self.catalog.get_product(product_id)

    # Cart
    @user_action("Failed to add item to cart.")
    def add_to_cart(self, product: Union[dict, ProductDoc], quantity: int = 1) -> bool:
        product_id = product.id if isinstance(product, ProductDoc) else (product or {}).get("id")
        name = product.name if isinstance(product, ProductDoc) else (product or {}).get("name", "Item")
        self.checkout.add_to_cart(product_id, quantity)
        self.notifier.success(f"'{name}' added to your cart!")
        return True

    @user_action("Failed to update quantity.")
    def update_quantity(self, product_id: str, quantity: int) -> bool:
        self.checkout.update_quantity(product_id, quantity)
        return True

    @user_action("Failed to remove item.", success_message="Item removed from your cart.")
    def remove_from_cart(self, product_id: str) -> bool:
        self.checkout.remove_from_cart(product_id)
        return True

    @user_action("Invalid coupon code.")
    def apply_coupon(self, code: str) -> bool:
        coupon = self.checkout.apply_coupon(code)
        self.notifier.success(f"Coupon {coupon.code} applied!")
        return True

    @user_action()
    def remove_coupon(self) -> bool:
        self.checkout.remove_coupon()
        return True

    @user_action("Failed to load your cart.")
    def cart_summary(self) -> Optional[CheckoutSummary]:
        return self.checkout.summary()

    @user_action("Failed to place order. Please try again.", success_message="Order placed successfully!")
    def place_order(self, shipping: Optional[Address] = None) -> Optional[OrderDoc]:
        return self.checkout.place_order(shipping)

    # Wishlist
    @user_action("Failed to add item. Please try again.")
    def add_to_wishlist(self, product: Union[dict, ProductDoc]) -> Optional[WishlistItemDoc]:
        item = self.wishlist.add(product)
        self.notifier.success(f"'{item.name}' added to your wishlist!")
        return item

    @user_action("Failed to remove item. Please try again.")
    def remove_from_wishlist(self, product_id: str) -> bool:
        removed = self.wishlist.remove(product_id)
        if removed:
            self.notifier.success("Item removed from your wishlist.")
        return removed

    @user_action("Failed to clear wishlist. Please try again.")
    def clear_wishlist(self) -> int:
        cleared = self.wishlist.clear()
        if cleared:
            self.notifier.success("Your wishlist has been cleared.")
        return cleared

    @user_action("Failed to update wishlist. Please try again.")
    def toggle_wishlist(self, product: Union[dict, ProductDoc]) -> bool:
        return self.wishlist.toggle(product)

    def is_in_wishlist(self, product_id: str) -> bool:
        return self.wishlist.is_in_wishlist(product_id)

    @user_action("Failed to load wishlist. Please try again.", default=[])
    def load_wishlist(self) -> List[WishlistItemDoc]:
        return self.wishlist.load()

    # Reviews
    def review_eligibility(self, product_id: str) -> EligibilityResult:
        return self.reviews.check_eligibility(self.uid, product_id)

    @user_action("Failed to submit review. Please try again.", success_message="Review submitted successfully!")
    def submit_review(self, product_id: str, rating: int, text: str) -> Optional[ReviewDoc]:
        return self.reviews.submit_review(self.uid, product_id, rating, text)

    @user_action("Failed to update review. Please try again.", success_message="Review updated successfully!")
    def edit_review(self, review_id: str, rating: int, text: str) -> Optional[ReviewDoc]:
        return self.reviews.edit_review(self.uid, review_id, rating, text)

    @user_action("Failed to repair your reviews.", default=0)
    def repair_reviews(self) -> int:
        if not self.uid:
            return 0
        return self.reviews.repair_mirrors(self.uid)

    @user_action("Failed to load your reviews.", default=[])
    def my_reviews(self) -> List[ReviewWithProduct]:
        if not self.uid:
            return []
        return self.reviews.list_user_reviews(self.uid)

    @user_action("Failed to load your reviews.", default=[])
    def reviewable_products(self) -> List[ProductDoc]:
        if not self.uid:
            return []
        return self.reviews.reviewable_products(self.uid)

    @user_action("Failed to load reviews.", default=[])
    def product_reviews(self, product_id: str) -> List[ReviewDoc]:
        return self.reviews.product_reviews(product_id)

    # Orders
    @user_action("Failed to load your orders.", default=[])
    def order_history(self) -> List[OrderDoc]:
        if not self.uid:
            return []
        return self.orders.order_history(self.uid)

    @user_action("Failed to load your orders.", default=[])
    def tracked_orders(self) -> List[OrderDoc]:
        if not self.uid:
            return []
        return self.orders.tracked_orders(self.uid)

    # Profile
    @user_action("Failed to load your profile.")
    def get_profile(self) -> Optional[UserProfileDoc]:
        return self.profile.get_profile(self.uid)

    @user_action("Failed to update profile. Please try again.", success_message="Profile updated successfully!")
    def update_profile(self, name: Optional[str] = None, phone: Optional[str] = None,
                       address: Optional[Address] = None, image_bytes: Optional[bytes] = None,
                       filename: Optional[str] = None) -> Optional[UserProfileDoc]:
        return self.profile.update_profile(self.uid, name, phone, address, image_bytes, filename)

    @user_action("Failed to save payment method.", success_message="Payment method saved successfully!")
    def add_card(self, number: str, cvv: str, expiry: str) -> Optional[List[PaymentMethod]]:
        return self.profile.add_card(self.uid, number, cvv, expiry)

    @user_action("Failed to save payment method.", success_message="Payment method saved successfully!")
    def add_upi(self, upi_id: str) -> Optional[List[PaymentMethod]]:
        return self.profile.add_upi(self.uid, upi_id)

    @user_action("Failed to remove payment method.", success_message="Payment method removed.")
    def remove_payment_method(self, index: int) -> Optional[List[PaymentMethod]]:
        return self.profile.remove_payment_method(self.uid, index)
