"""Read models returned to the presentation layer."""

from typing import List
from pydantic import BaseModel, Field

from sweetshop.models.firestore_types import ProductDoc, ReviewDoc, Coupon
from sweetshop.util.formatting import CURRENCY, format_currency


class CartLine(BaseModel):
    product: ProductDoc
    quantity: int

    @property
    def line_total(self) -> float:
        return round(self.product.price * self.quantity, 2)


class CheckoutSummary(BaseModel):
    lines: List[CartLine] = Field(default_factory=list)
    subtotal: float = 0.0
    discount: float = 0.0
    coupon: Coupon | None = None
    currency: str = CURRENCY
    decimals: int = 2

    @property
    def total(self) -> float:
        return round(max(self.subtotal - self.discount, 0.0), 2)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def formatted(self) -> dict:
        return {
            "subtotal": format_currency(self.subtotal, self.decimals, self.currency),
            "discount": format_currency(self.discount, self.decimals, self.currency),
            "total": format_currency(self.total, self.decimals, self.currency),
        }


class ReviewWithProduct(BaseModel):
    review: ReviewDoc
    product: ProductDoc
