"""Utility type definitions."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    """Order status enumeration.

    Stored documents use mixed casing ("Delivered", "DELIVERED"); use
    ``OrderStatus.parse`` to read them.
    """
    PLACED = "Placed"
    APPROVED = "Approved"
    PACKED = "Packed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    DECLINED = "Declined"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value) -> Optional["OrderStatus"]:
        """Case-insensitive lookup; unknown or empty values give None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().upper()
        if key == "CANCELED":
            key = "CANCELLED"
        return cls.__members__.get(key)

    @property
    def has_tracking(self) -> bool:
        return self in (OrderStatus.SHIPPED, OrderStatus.DELIVERED)


DEFAULT_STATUS_LABEL = "Processing"


class EligibilityState(str, Enum):
    """Outcome of a review eligibility check."""
    ALREADY_REVIEWED = "already_reviewed"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    MISSING_INDEX = "missing_index"
    ERROR = "error"


class EligibilityResult(BaseModel):
    state: EligibilityState
    message: str = ""
    orderId: Optional[str] = None
    # collection whose query needs an index, set with MISSING_INDEX
    collection: Optional[str] = None

    @property
    def can_review(self) -> bool:
        return self.state == EligibilityState.ELIGIBLE


class CardType(str, Enum):
    VISA = "Visa"
    MASTERCARD = "MasterCard"
    RUPAY = "RuPay"
    AMEX = "AMEX"
    UNKNOWN = "Unknown"


class PaymentMethodType(str, Enum):
    CARD = "card"
    UPI = "upi"
