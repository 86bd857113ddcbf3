"""Shopping cart state.

The cart lives only in memory. It is empty or populated; every transition
is one of the actions below, and sign-out resets it.
"""

from typing import Iterable, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from sweetshop.models.firestore_types import CartItem, Coupon
from sweetshop.store.events import USER_CLEARED
from sweetshop.store.store import Action
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

ADD_TO_CART = "cart/addToCart"
REMOVE_FROM_CART = "cart/removeFromCart"
UPDATE_QUANTITY = "cart/updateQuantity"
APPLY_COUPON = "cart/applyCoupon"
REMOVE_COUPON = "cart/removeCoupon"
CLEAR_CART = "cart/clearCart"
REMOVE_PURCHASED_FROM_CART = "cart/removePurchasedFromCart"


class CartState(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: Tuple[CartItem, ...] = ()
    coupon: Optional[Coupon] = None


def add_to_cart(product_id: str, quantity: int = 1) -> Action:
    return Action(ADD_TO_CART, {"productId": product_id, "quantity": quantity})


def remove_from_cart(product_id: str) -> Action:
    return Action(REMOVE_FROM_CART, product_id)


def update_quantity(product_id: str, quantity: int) -> Action:
    return Action(UPDATE_QUANTITY, {"productId": product_id, "quantity": quantity})


def apply_coupon(coupon: Coupon) -> Action:
    return Action(APPLY_COUPON, coupon)


def remove_coupon() -> Action:
    return Action(REMOVE_COUPON)


def clear_cart() -> Action:
    return Action(CLEAR_CART)


def remove_purchased_from_cart(product_ids: Iterable[str]) -> Action:
    return Action(REMOVE_PURCHASED_FROM_CART, list(product_ids))


def _add(state: CartState, payload: dict) -> CartState:
    quantity = payload["quantity"]
    if not isinstance(quantity, int) or quantity < 1:
        return state
    product_id = payload["productId"]

    items = list(state.items)
    for index, item in enumerate(items):
        if item.productId == product_id:
            items[index] = CartItem(productId=product_id, quantity=item.quantity + quantity)
            break
    else:
        items.append(CartItem(productId=product_id, quantity=quantity))
    return state.model_copy(update={"items": tuple(items)})


def _remove(state: CartState, product_id: str) -> CartState:
    items = tuple(item for item in state.items if item.productId != product_id)
    if len(items) == len(state.items):
        return state
    return state.model_copy(update={"items": items})


def _update_quantity(state: CartState, payload: dict) -> CartState:
    quantity = payload["quantity"]
    # quantities below one are rejected, use remove instead
    if not isinstance(quantity, int) or quantity < 1:
        return state
    product_id = payload["productId"]
    if not any(item.productId == product_id for item in state.items):
        return state
    items = tuple(
        CartItem(productId=product_id, quantity=quantity) if item.productId == product_id else item
        for item in state.items
    )
    return state.model_copy(update={"items": items})


def _apply_coupon(state: CartState, coupon: Coupon) -> CartState:
    return state.model_copy(update={"coupon": coupon})


def _remove_coupon(state: CartState, payload=None) -> CartState:
    if state.coupon is None:
        return state
    return state.model_copy(update={"coupon": None})


def _clear(state: CartState, payload=None) -> CartState:
    if not state.items and state.coupon is None:
        return state
    return CartState()


def _on_user_cleared(state: CartState, payload=None) -> CartState:
    logger.info("Cart cleared after sign-out")
    return CartState()


def _remove_purchased(state: CartState, product_ids: list) -> CartState:
    if not product_ids:
        return state
    purchased = set(product_ids)
    items = tuple(item for item in state.items if item.productId not in purchased)
    if len(items) == len(state.items):
        return state
    return state.model_copy(update={"items": items})


HANDLERS = {
    ADD_TO_CART: _add,
    REMOVE_FROM_CART: _remove,
    UPDATE_QUANTITY: _update_quantity,
    APPLY_COUPON: _apply_coupon,
    REMOVE_COUPON: _remove_coupon,
    CLEAR_CART: _clear,
    REMOVE_PURCHASED_FROM_CART: _remove_purchased,
    USER_CLEARED: _on_user_cleared,
}


def cart_reducer(state: CartState, action: Action) -> CartState:
    handler = HANDLERS.get(action.type)
    return handler(state, action.payload) if handler else state


# Selectors
def cart_count(state: CartState) -> int:
    return sum(item.quantity for item in state.items)


def is_empty(state: CartState) -> bool:
    return not state.items


def quantity_of(state: CartState, product_id: str) -> int:
    return next((item.quantity for item in state.items if item.productId == product_id), 0)
