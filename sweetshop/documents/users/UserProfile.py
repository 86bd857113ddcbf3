"""User profile document class."""

from typing import Optional, List
from sweetshop.apis.Db import Db
from sweetshop.documents.DocumentBase import DocumentBase
from sweetshop.models.firestore_types import UserProfileDoc, ActivityDoc, PaymentMethod, Address
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class UserProfile(DocumentBase[UserProfileDoc]):
    """Profile stored at users/{uid}."""

    pydantic_model = UserProfileDoc
    collection_key = "users"
    id_field = "uid"

    @property
    def doc(self) -> UserProfileDoc:
        """Get the typed document."""
        return super().doc

    @property
    def uid(self) -> str:
        return self.id

    def update_details(self, name: Optional[str] = None, phone: Optional[str] = None,
                       address: Optional[Address] = None, profile_pic: Optional[str] = None):
        """Update editable profile fields. Fields left as None are not touched.

        Args:
            name: Display name
            phone: Phone number
            address: Postal address
            profile_pic: Image public id
        """
        data = {
            "name": name,
            "phone": phone,
            "address": address.model_dump() if address else None,
            "profilePic": profile_pic,
        }
        self.update_doc(data)
        logger.info(f"Updated profile {self.id}")

    def set_payment_methods(self, methods: List[PaymentMethod]):
        self.update_doc({"paymentMethods": [m.model_dump(mode="json", exclude_none=True) for m in methods]})
        logger.info(f"Saved {len(methods)} payment methods for {self.id}")


def log_user_activity(uid: str, action: str, details: Optional[dict] = None, db=None) -> bool:
    """Write an entry to users/{uid}/activities without loading the profile."""
    db = db or Db.get_instance()
    try:
        activity_ref = db.collections["userActivities"](uid).document()
        activity = ActivityDoc(
            id=activity_ref.id,
            userId=uid,
            action=action,
            details=details,
        )
        data = activity.model_dump(exclude_none=True)
        data["createdAt"] = db.server_timestamp
        activity_ref.set(data)
        logger.info(f"Logged activity {action} for user {uid}")
        return True
    except Exception as e:
        logger.warning(f"Failed to log activity {action} for user {uid}: {e}")
        return False
