"""Firestore document type definitions using Pydantic.

Remote documents are loosely typed (prices stored as strings, statuses in
mixed case, legacy payment method shapes); the validators here coerce them
into one shape at the boundary.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sweetshop.models.util_types import OrderStatus, PaymentMethodType, DEFAULT_STATUS_LABEL


def _to_float(value, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


class BaseDoc(BaseModel):
    """Base document type for all Firestore documents."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    createdAt: Optional[datetime] = None
    lastUpdatedAt: Optional[datetime] = None


class Address(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    houseNo: str = ""
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    country: str = "Egypt"
    pin: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.line1 and self.city and self.pin)


class PaymentMethod(BaseModel):
    """Saved card or UPI handle. Card numbers are only kept masked."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    type: PaymentMethodType
    cardType: Optional[str] = None
    last4: Optional[str] = None
    maskedNumber: Optional[str] = None
    expiry: Optional[str] = None
    upiId: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "upi" in data and not data.get("upiId"):
            data["upiId"] = data.pop("upi")
            data["type"] = PaymentMethodType.UPI.value
        kind = data.get("type")
        if kind not in (PaymentMethodType.CARD.value, PaymentMethodType.UPI.value, None):
            # checkout stored the card brand in "type"
            data.setdefault("cardType", kind)
            data["type"] = PaymentMethodType.CARD.value
        number = data.pop("cardNumber", None)
        if number:
            digits = "".join(ch for ch in str(number) if ch.isdigit())
            data.setdefault("last4", digits[-4:])
            data.setdefault("maskedNumber", f"**** **** **** {digits[-4:]}")
            data.setdefault("type", PaymentMethodType.CARD.value)
        if "cardExpiry" in data:
            data.setdefault("expiry", data.pop("cardExpiry"))
        data.pop("cvv", None)
        data.pop("cardCVV", None)
        return data

    @property
    def label(self) -> str:
        if self.type == PaymentMethodType.UPI:
            return self.upiId or ""
        return f"{self.cardType or 'Card'} ending in {self.last4 or '????'}"


class UserProfileDoc(BaseDoc):
    """Profile document stored at users/{uid}."""

    uid: str
    email: str = ""
    name: str = ""
    profilePic: str = ""
    phone: str = ""
    address: Address = Field(default_factory=Address)
    paymentMethods: List[PaymentMethod] = Field(default_factory=list)

    @field_validator("address", mode="before")
    @classmethod
    def _address_or_default(cls, value):
        return value or {}

    @field_validator("email", "name", "profilePic", "phone", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class IdentityUser(BaseModel):
    """Signed-in account as reported by the identity provider."""

    uid: str
    email: Optional[str] = None
    displayName: Optional[str] = None
    photoURL: Optional[str] = None
    providerId: str = "password"
    idToken: Optional[str] = None
    refreshToken: Optional[str] = None


class SessionUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None


class FullUser(BaseModel):
    """Normalized record published to the user store after sign-in."""

    model_config = ConfigDict(frozen=True)

    user: SessionUser
    name: str = ""
    profilePic: str = ""


class ProductDoc(BaseDoc):
    id: str
    name: str = ""
    description: str = ""
    price: float = 0.0
    mrp: Optional[float] = None
    stock: int = 0
    type: str = ""
    image: Optional[str] = None
    imageUrl: Optional[str] = None
    showOnHome: bool = False

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return _to_float(value)

    @field_validator("mrp", mode="before")
    @classmethod
    def _coerce_mrp(cls, value):
        return None if value in (None, "") else _to_float(value)

    @field_validator("stock", mode="before")
    @classmethod
    def _coerce_stock(cls, value):
        return _to_int(value)

    @field_validator("showOnHome", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    productId: str
    quantity: int = Field(default=1, ge=1)


class Coupon(BaseModel):
    """Discount coupon applied to the cart."""

    model_config = ConfigDict(frozen=True)

    code: str
    discountType: Literal["percent", "flat"] = "percent"
    value: float = Field(ge=0)
    maxDiscount: Optional[float] = None
    minOrderValue: float = 0.0

    def discount_for(self, subtotal: float) -> float:
        if subtotal <= 0 or subtotal < self.minOrderValue:
            return 0.0
        if self.discountType == "percent":
            discount = subtotal * min(self.value, 100.0) / 100.0
        else:
            discount = self.value
        if self.maxDiscount is not None:
            discount = min(discount, self.maxDiscount)
        return round(min(discount, subtotal), 2)


class WishlistItemDoc(BaseModel):
    """Item stored at users/{uid}/wishlist/{productId}."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str = "Unknown Product"
    price: float = 0.0
    image: str = ""
    addedAt: Optional[datetime] = None

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return _to_float(value)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value):
        return value or "Unknown Product"


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    productId: str
    name: str = ""
    quantity: int = 1
    price: float = 0.0

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        return _to_int(value, default=1)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return _to_float(value)


class Tracking(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str = ""
    carrier: str = ""
    url: Optional[str] = None


class OrderDoc(BaseDoc):
    """Order document. ``status`` is None when the stored value is not a known status."""

    id: str
    userId: str
    items: List[OrderItem] = Field(default_factory=list)
    status: Optional[OrderStatus] = None
    statusLabel: str = DEFAULT_STATUS_LABEL
    orderDate: Optional[datetime] = None
    tracking: Optional[Tracking] = None
    totalAmount: float = 0.0
    shipping: Optional[Address] = None
    couponCode: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw_status = data.get("status")
        status = OrderStatus.parse(raw_status)
        data["status"] = status
        if status is not None:
            data["statusLabel"] = status.value
        elif isinstance(raw_status, str) and raw_status.strip():
            data["statusLabel"] = raw_status.strip()
        if "totalAmount" not in data and "total" in data:
            data["totalAmount"] = data["total"]
        data["totalAmount"] = _to_float(data.get("totalAmount"))
        if not data.get("tracking"):
            data["tracking"] = None
        data["items"] = [item for item in (data.get("items") or []) if isinstance(item, dict) and item.get("productId")]
        return data

    @field_validator("orderDate", mode="before")
    @classmethod
    def _lenient_date(cls, value):
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return value

    def contains_product(self, product_id: str) -> bool:
        return any(item.productId == product_id for item in self.items)

    @property
    def is_trackable(self) -> bool:
        return bool(self.status and self.status.has_tracking and self.tracking and self.tracking.code)


# bounds every stored review must satisfy; configured limits may only narrow them
REVIEW_MIN_RATING = 1
REVIEW_MAX_RATING = 5
REVIEW_MAX_TEXT_LENGTH = 500


class ReviewDoc(BaseModel):
    """Review stored at reviews/{id} and mirrored at products/{productId}/reviews/{id}."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    userId: str
    productId: str
    rating: int = Field(ge=REVIEW_MIN_RATING, le=REVIEW_MAX_RATING)
    text: str = Field(max_length=REVIEW_MAX_TEXT_LENGTH)
    userName: str = "Anonymous"
    userProfilePic: str = ""
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @field_validator("userProfilePic", "userName", mode="before")
    @classmethod
    def _none_to_default(cls, value, info):
        if value:
            return value
        return "Anonymous" if info.field_name == "userName" else ""


class ActivityDoc(BaseDoc):
    """Per-user activity log entry at users/{uid}/activities/{id}."""

    id: str
    userId: str
    action: str  # signed_in, signed_up, review_submitted, review_mirror_failed, ...
    details: Optional[Dict[str, Any]] = None
