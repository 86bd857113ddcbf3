"""Storefront database class with Firestore access."""

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as gcp_exceptions
from typing import Dict, Any

from sweetshop.config.env_loader import (
    get_google_credentials_path,
    get_optional_env_var,
)
from sweetshop.exceptions import MissingIndexError, PermissionError, ProjectError
from sweetshop.util.logger import get_logger


class Db:
    """Database access singleton.

    Holds the Firestore client and the collection registry used by documents
    and services. Sub-collections are registered as callables taking the
    parent document id.
    """
    _instances: Dict[str, Any] = {}  # Class registry for singleton instances
    server_timestamp = firestore.firestore.SERVER_TIMESTAMP

    collections: Dict[str, Any] = {}

    def __new__(cls, *args, **kwargs):
        """Ensure only one instance per class exists"""
        if cls.__name__ not in cls._instances:
            cls._instances[cls.__name__] = super().__new__(cls)
        return cls._instances[cls.__name__]

    def __init__(self, client=None):
        """Initialize the database - only runs once per class due to singleton

        Args:
            client: Optional Firestore client, e.g. an emulator or test client
        """
        if hasattr(self, "_initialized"):
            return

        self._init_firestore(client)
        self._init_collections()
        self._initialized = True

    def _init_firestore(self, client=None):
        """Initialize Firestore client and base configuration."""
        self.logger = get_logger("sweetshop.db")
        if client is None:
            self.ensure_app()
            client = firestore.client()
        self.firestore = client
        self.logger.info("Firestore initialized")

    @staticmethod
    def ensure_app():
        """Return the default firebase_admin app, initializing it on first use."""
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        creds_path = get_google_credentials_path()
        project_id = get_optional_env_var("GCP_PROJECT_ID")
        cred = credentials.Certificate(creds_path) if creds_path else None
        options = {"projectId": project_id} if project_id else None
        return firebase_admin.initialize_app(cred, options)

    def _init_collections(self):
        """Initialize collection references."""
        self.collections = {
            "users": self.firestore.collection("users"),
            "orders": self.firestore.collection("orders"),
            "reviews": self.firestore.collection("reviews"),
            "products": self.firestore.collection("products"),
            "productReviews": lambda product_id: self.firestore.collection(f"products/{product_id}/reviews"),
            "wishlist": lambda uid: self.firestore.collection(f"users/{uid}/wishlist"),
            "legacyWishlist": lambda uid: self.firestore.collection(f"wishlists/{uid}/items"),
            "userActivities": lambda uid: self.firestore.collection(f"users/{uid}/activities"),
        }

    @classmethod
    def get_instance(cls, client=None):
        """Get or create the singleton instance for this class"""
        return cls(client)

    @classmethod
    def reset_instance(cls):
        """Drop the singleton so the next get_instance builds a new client."""
        cls._instances.pop(cls.__name__, None)

    def batch(self):
        return self.firestore.batch()

    # Error translation
    @staticmethod
    def translate_error(error: Exception, collection: str) -> Exception:
        """Map a Firestore client error onto the storefront error taxonomy.

        Args:
            error: Exception raised by the Firestore client
            collection: Collection the failing request targeted

        Returns:
            The storefront exception to raise, or the original error when it has no mapping
        """
        if isinstance(error, ProjectError):
            return error
        if isinstance(error, gcp_exceptions.FailedPrecondition):
            return MissingIndexError(collection)
        if isinstance(error, gcp_exceptions.PermissionDenied):
            return PermissionError(error.message or "Missing or insufficient permissions.", resource=collection)
        return error
