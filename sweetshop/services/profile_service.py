"""Profile details, profile picture and saved payment methods."""

import re
from typing import List, Optional

from sweetshop.apis.Db import Db
from sweetshop.apis.ImageUploader import ImageUploader
from sweetshop.config.loader import AppConfig
from sweetshop.documents.users.UserProfile import UserProfile, log_user_activity
from sweetshop.exceptions import ExternalServiceError, NotSignedInError, ValidationError
from sweetshop.models.firestore_types import Address, PaymentMethod, UserProfileDoc
from sweetshop.models.util_types import CardType, PaymentMethodType
from sweetshop.store.session import Session
from sweetshop.util.formatting import mask_card_number
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

CVV_PATTERN = re.compile(r"^\d{3,4}$")
EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])\/?([2-9][0-9])$")
UPI_PATTERN = re.compile(r"^[a-zA-Z0-9.\-_]{2,256}@[a-zA-Z]{2,64}$")
CARD_NUMBER_PATTERN = re.compile(r"^\d{12,19}$")


def detect_card_type(number: str) -> CardType:
    digits = re.sub(r"\D", "", number or "")
    if digits.startswith("4"):
        return CardType.VISA
    if re.match(r"^5[1-5]", digits):
        return CardType.MASTERCARD
    if digits.startswith("6"):
        return CardType.RUPAY
    if re.match(r"^3[47]", digits):
        return CardType.AMEX
    return CardType.UNKNOWN


class ProfileService:
    """Reads and edits users/{uid}.

    Name and picture changes are pushed to the session's user store once the
    profile document is updated.
    """

    def __init__(self, session: Session, config: Optional[AppConfig] = None,
                 uploader: Optional[ImageUploader] = None):
        self.session = session
        self.config = config or {}
        self.uploader = uploader
        self.db = Db.get_instance()

    def _load(self, uid: Optional[str]) -> UserProfile:
        if not uid:
            raise NotSignedInError()
        try:
            return UserProfile(uid)
        except Exception as e:
            raise Db.translate_error(e, "users")

    def get_profile(self, uid: Optional[str]) -> UserProfileDoc:
        return self._load(uid).doc

    def update_profile(self, uid: Optional[str], name: Optional[str] = None, phone: Optional[str] = None,
                       address: Optional[Address] = None, image_bytes: Optional[bytes] = None,
                       filename: Optional[str] = None) -> UserProfileDoc:
        """Save profile edits.

        A new picture is uploaded before anything is written, so a failed
        upload leaves the profile untouched.

        Args:
            uid: Profile owner
            name: New display name
            phone: New phone number
            address: New postal address
            image_bytes: New profile picture
            filename: Original file name of the picture

        Returns:
            The updated profile
        """
        profile = self._load(uid)
        name = name.strip() if name else None
        if name is not None and not name:
            raise ValidationError("Name cannot be empty.", field="name")

        public_id = None
        if image_bytes:
            if self.uploader is None:
                raise ExternalServiceError("cloudinary", "Image uploads are not configured")
            public_id = self.uploader.upload(image_bytes, filename or "profile.jpg")

        try:
            profile.update_details(name=name, phone=phone, address=address, profile_pic=public_id)
        except Exception as e:
            raise Db.translate_error(e, "users")

        if self.session.uid == uid:
            self.session.update_profile(name=name, profile_pic=public_id)
        log_user_activity(uid, "profile_updated", {"picture": bool(public_id)}, db=self.db)
        return profile.doc

    # Payment methods
    def _save_methods(self, profile: UserProfile, methods: List[PaymentMethod]) -> List[PaymentMethod]:
        try:
            profile.set_payment_methods(methods)
        except Exception as e:
            raise Db.translate_error(e, "users")
        return list(profile.doc.paymentMethods)

    def add_card(self, uid: Optional[str], number: str, cvv: str, expiry: str) -> List[PaymentMethod]:
        """Save a card. Only the masked number is stored; the CVV is checked and discarded.

        A saved card with the same last four digits is replaced.
        """
        digits = re.sub(r"[\s-]", "", number or "")
        if not CARD_NUMBER_PATTERN.match(digits):
            raise ValidationError("Please enter a valid card number.", field="cardNumber")
        if not CVV_PATTERN.match((cvv or "").strip()):
            raise ValidationError("Please enter a valid CVV.", field="cvv")
        expiry = (expiry or "").strip()
        match = EXPIRY_PATTERN.match(expiry)
        if not match:
            raise ValidationError("Please enter a valid expiry date (MM/YY).", field="expiry")

        card = PaymentMethod(
            type=PaymentMethodType.CARD,
            cardType=detect_card_type(digits).value,
            last4=digits[-4:],
            maskedNumber=mask_card_number(digits),
            expiry=f"{match.group(1)}/{match.group(2)}",
        )

        profile = self._load(uid)
        methods = [
            method for method in profile.doc.paymentMethods
            if not (method.type == PaymentMethodType.CARD and method.last4 == card.last4)
        ]
        methods.append(card)
        saved = self._save_methods(profile, methods)
        logger.info(f"Saved {card.label} for {uid}")
        return saved

    def add_upi(self, uid: Optional[str], upi_id: str) -> List[PaymentMethod]:
        upi_id = (upi_id or "").strip()
        if not UPI_PATTERN.match(upi_id):
            raise ValidationError("Please enter a valid UPI ID.", field="upiId")

        profile = self._load(uid)
        methods = [
            method for method in profile.doc.paymentMethods
            if not (method.type == PaymentMethodType.UPI and (method.upiId or "").lower() == upi_id.lower())
        ]
        methods.append(PaymentMethod(type=PaymentMethodType.UPI, upiId=upi_id))
        return self._save_methods(profile, methods)

    def remove_payment_method(self, uid: Optional[str], index: int) -> List[PaymentMethod]:
        profile = self._load(uid)
        methods = list(profile.doc.paymentMethods)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(methods):
            raise ValidationError("Payment method not found.", field="index")
        removed = methods.pop(index)
        logger.info(f"Removing {removed.label} for {uid}")
        return self._save_methods(profile, methods)
