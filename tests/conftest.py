"""Pytest configuration and fixtures."""

import os

import pytest

# Required variables must exist before the composition root validates them
os.environ.setdefault("GCP_PROJECT_ID", "test-project")
os.environ.setdefault("FIREBASE_WEB_API_KEY", "test-api-key")

from sweetshop.apis.Db import Db  # noqa: E402
from sweetshop.config.loader import load_app_config  # noqa: E402
from sweetshop.models.firestore_types import FullUser, SessionUser  # noqa: E402
from sweetshop.store.session import Session  # noqa: E402
from sweetshop.util.notifier import Notifier  # noqa: E402
from sweetshop.util.session_cache import SessionCache  # noqa: E402
from tests.util.fake_firestore import FakeFirestore  # noqa: E402
from tests.util.firebase_emulator import firestore_emulator  # noqa: E402,F401


@pytest.fixture
def firestore_client():
    """In-memory Firestore installed as the Db singleton's client."""
    Db.reset_instance()
    client = FakeFirestore()
    Db.get_instance(client=client)
    yield client
    Db.reset_instance()


@pytest.fixture
def db(firestore_client):
    """Get test database instance."""
    return Db.get_instance()


@pytest.fixture
def config():
    return load_app_config()


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def cache():
    return SessionCache()


@pytest.fixture
def test_user_id():
    """Get a test user ID."""
    return "test-user-123"


@pytest.fixture
def signed_in(session, test_user_id):
    """Session with a signed-in user."""
    session.sign_in(FullUser(
        user=SessionUser(uid=test_user_id, email="amira@example.com"),
        name="Amira",
        profilePic="avatars/amira",
    ))
    return session


@pytest.fixture
def seed_products(firestore_client):
    """Seed a small catalog. Prices are stored the way the admin panel writes them."""
    products = {
        "p1": {"name": "Chocolate Cake", "price": "250", "stock": "5", "type": "Cakes & Pastries",
               "image": "/images/cake.jpg", "showOnHome": True},
        "p2": {"name": "Vanilla Cupcake", "price": 50, "stock": 12, "type": "Cupcakes",
               "imageUrl": "https://cdn.example.com/cupcake.jpg", "showOnHome": "false"},
        "p3": {"name": "Mango Sorbet", "price": 75.5, "stock": 0, "type": "Frozen Treats"},
    }
    for product_id, data in products.items():
        firestore_client.seed(f"products/{product_id}", data)
    return products
