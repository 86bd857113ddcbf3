"""Models package initialization."""

from .firestore_types import (
    BaseDoc,
    Address,
    PaymentMethod,
    UserProfileDoc,
    IdentityUser,
    SessionUser,
    FullUser,
    ProductDoc,
    CartItem,
    Coupon,
    WishlistItemDoc,
    OrderItem,
    Tracking,
    OrderDoc,
    ReviewDoc,
    ActivityDoc,
)
from .util_types import (
    OrderStatus,
    EligibilityState,
    EligibilityResult,
    CardType,
    PaymentMethodType,
    DEFAULT_STATUS_LABEL,
)
from .view_types import CartLine, CheckoutSummary, ReviewWithProduct

__all__ = [
    # Firestore types
    "BaseDoc",
    "Address",
    "PaymentMethod",
    "UserProfileDoc",
    "IdentityUser",
    "SessionUser",
    "FullUser",
    "ProductDoc",
    "CartItem",
    "Coupon",
    "WishlistItemDoc",
    "OrderItem",
    "Tracking",
    "OrderDoc",
    "ReviewDoc",
    "ActivityDoc",
    # Utility types
    "OrderStatus",
    "EligibilityState",
    "EligibilityResult",
    "CardType",
    "PaymentMethodType",
    "DEFAULT_STATUS_LABEL",
    # View types
    "CartLine",
    "CheckoutSummary",
    "ReviewWithProduct",
]
