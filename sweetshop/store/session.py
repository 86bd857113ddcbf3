"""Per-process session: the signal bus plus the user, cart and wishlist stores."""

from typing import Optional

from sweetshop.models.firestore_types import FullUser, SessionUser
from sweetshop.store.cart_slice import CartState, cart_reducer
from sweetshop.store.events import SignalBus, USER_CLEARED
from sweetshop.store.store import Store
from sweetshop.store.user_slice import UserState, user_reducer, set_full_user, update_user_profile
from sweetshop.store.wishlist_slice import WishlistState, wishlist_reducer
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class Session:
    """Wires the stores to the signal bus and tracks session generations.

    ``generation`` changes whenever the signed-in user changes. Code that
    starts a remote call records it and drops the result if it moved on
    before the call returned.
    """

    def __init__(self, bus: Optional[SignalBus] = None):
        self.bus = bus or SignalBus()
        self.user: Store[UserState] = Store("user", user_reducer, UserState())
        self.cart: Store[CartState] = Store("cart", cart_reducer, CartState())
        self.wishlist: Store[WishlistState] = Store("wishlist", wishlist_reducer, WishlistState())

        # each store resets itself; nothing here clears them directly
        for store in (self.user, self.cart, self.wishlist):
            store.connect(self.bus, USER_CLEARED)

        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self.user.state.currentUser

    @property
    def uid(self) -> Optional[str]:
        user = self.current_user
        return user.uid if user else None

    @property
    def is_signed_in(self) -> bool:
        return self.current_user is not None

    def sign_in(self, full_user: FullUser):
        """Publish the signed-in user.

        A guest cart carries over to the first sign-in. When another user
        replaces the current one, every store is cleared first.
        """
        previous = self.uid
        if previous != full_user.user.uid:
            self._generation += 1
            if previous is not None:
                delivered = self.bus.publish(USER_CLEARED)
                logger.info(f"Session switched from {previous} to {full_user.user.uid} ({delivered} stores reset)")
        self.user.dispatch(set_full_user(full_user))
        logger.info(f"Session user set to {full_user.user.uid}")

    def update_profile(self, name: Optional[str] = None, profile_pic: Optional[str] = None):
        self.user.dispatch(update_user_profile(name=name, profile_pic=profile_pic))

    def sign_out(self):
        """Publish the clear signal. Every connected store drops its per-user data."""
        previous = self.uid
        self._generation += 1
        delivered = self.bus.publish(USER_CLEARED)
        logger.info(f"Session cleared for {previous or 'anonymous'} ({delivered} stores reset)")
