"""Storefront services. Services raise storefront errors; brokers turn them into notices."""

from .auth_service import AuthService
from .catalog_service import CatalogService
from .checkout_service import CheckoutService
from .order_service import OrderService
from .profile_service import ProfileService
from .review_service import ReviewService
from .wishlist_service import WishlistService

__all__ = [
    "AuthService",
    "CatalogService",
    "CheckoutService",
    "OrderService",
    "ProfileService",
    "ReviewService",
    "WishlistService",
]
