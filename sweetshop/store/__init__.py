"""State containers for the storefront session."""

from .events import SignalBus, USER_CLEARED
from .store import Action, Store
from .session import Session
from . import cart_slice, user_slice, wishlist_slice

__all__ = [
    "SignalBus",
    "USER_CLEARED",
    "Action",
    "Store",
    "Session",
    "cart_slice",
    "user_slice",
    "wishlist_slice",
]
