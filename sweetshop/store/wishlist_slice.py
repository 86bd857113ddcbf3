"""Local copy of the signed-in user's wishlist."""

from typing import Iterable, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from sweetshop.models.firestore_types import WishlistItemDoc
from sweetshop.store.events import USER_CLEARED
from sweetshop.store.store import Action

SET_LOADING = "wishlist/setLoading"
SET_ERROR = "wishlist/setError"
SET_WISHLIST_ITEMS = "wishlist/setWishlistItems"
ADD_TO_WISHLIST = "wishlist/addToWishlist"
REMOVE_FROM_WISHLIST = "wishlist/removeFromWishlist"
CLEAR_WISHLIST = "wishlist/clearWishlist"


class WishlistState(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: Tuple[WishlistItemDoc, ...] = ()
    loading: bool = False
    error: Optional[str] = None


def set_loading(loading: bool) -> Action:
    return Action(SET_LOADING, loading)


def set_error(message: Optional[str]) -> Action:
    return Action(SET_ERROR, message)


def set_wishlist_items(items: Iterable[WishlistItemDoc]) -> Action:
    return Action(SET_WISHLIST_ITEMS, list(items))


def add_to_wishlist(item: WishlistItemDoc) -> Action:
    return Action(ADD_TO_WISHLIST, item)


def remove_from_wishlist(product_id: str) -> Action:
    return Action(REMOVE_FROM_WISHLIST, product_id)


def clear_wishlist() -> Action:
    return Action(CLEAR_WISHLIST)


def _set_loading(state: WishlistState, loading: bool) -> WishlistState:
    return state.model_copy(update={"loading": bool(loading)})


def _set_error(state: WishlistState, message: Optional[str]) -> WishlistState:
    return state.model_copy(update={"error": message, "loading": False})


def _set_items(state: WishlistState, items: list) -> WishlistState:
    unique = {}
    for item in items:
        unique.setdefault(item.id, item)
    return WishlistState(items=tuple(unique.values()))


def _add(state: WishlistState, item: WishlistItemDoc) -> WishlistState:
    if any(existing.id == item.id for existing in state.items):
        return state
    return state.model_copy(update={"items": state.items + (item,)})


def _remove(state: WishlistState, product_id: str) -> WishlistState:
    items = tuple(item for item in state.items if item.id != product_id)
    if len(items) == len(state.items):
        return state
    return state.model_copy(update={"items": items})


def _clear(state: WishlistState, payload=None) -> WishlistState:
    return WishlistState()


HANDLERS = {
    SET_LOADING: _set_loading,
    SET_ERROR: _set_error,
    SET_WISHLIST_ITEMS: _set_items,
    ADD_TO_WISHLIST: _add,
    REMOVE_FROM_WISHLIST: _remove,
    CLEAR_WISHLIST: _clear,
    USER_CLEARED: _clear,
}


def wishlist_reducer(state: WishlistState, action: Action) -> WishlistState:
    handler = HANDLERS.get(action.type)
    return handler(state, action.payload) if handler else state


def is_in_wishlist(state: WishlistState, product_id: str) -> bool:
    return any(item.id == product_id for item in state.items)
