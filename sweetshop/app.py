"""Composition root: builds the session, services and the storefront handlers."""

from typing import Optional

from sweetshop.apis.Db import Db
from sweetshop.apis.IdentityToolkit import IdentityToolkit
from sweetshop.apis.ImageUploader import ImageUploader
from sweetshop.brokers.storefront import Storefront
from sweetshop.config.env_loader import get_cloudinary_config, validate_environment
from sweetshop.config.loader import AppConfig, load_app_config
from sweetshop.services.auth_service import AuthService
from sweetshop.services.catalog_service import CatalogService
from sweetshop.services.checkout_service import CheckoutService
from sweetshop.services.order_service import OrderService
from sweetshop.services.profile_service import ProfileService
from sweetshop.services.review_service import ReviewService
from sweetshop.services.wishlist_service import WishlistService
from sweetshop.store.session import Session
from sweetshop.util.logger import get_logger
from sweetshop.util.notifier import Notifier
from sweetshop.util.session_cache import SessionCache

logger = get_logger(__name__)


def create_app(config_path: Optional[str] = None, client=None, identity: Optional[IdentityToolkit] = None,
               uploader: Optional[ImageUploader] = None, config: Optional[AppConfig] = None) -> Storefront:
    """Build a storefront for one client session.

    Args:
        config_path: Optional path to a settings.yaml override
        client: Optional Firestore client, e.g. for the emulator or tests
        identity: Optional identity provider client; built from FIREBASE_WEB_API_KEY otherwise
        uploader: Optional image uploader; built from CLOUDINARY_CLOUD_NAME when set
        config: Already loaded application configuration

    Raises:
        EnvironmentConfigError: If required environment variables are missing
        ConfigValidationError: If settings.yaml is invalid
    """
    env = validate_environment()
    config = config or load_app_config(config_path)

    Db.get_instance(client)

    if identity is None:
        identity = IdentityToolkit(env["FIREBASE_WEB_API_KEY"])
    if uploader is None and env.get("CLOUDINARY_CLOUD_NAME"):
        uploader = ImageUploader(**get_cloudinary_config())

    session = Session()
    catalog = CatalogService(SessionCache(), config)

    storefront = Storefront(
        session=session,
        notifier=Notifier(),
        auth=AuthService(identity, session, config),
        catalog=catalog,
        wishlist=WishlistService(session, config, origin=env.get("STOREFRONT_ORIGIN", "")),
        reviews=ReviewService(session, config),
        orders=OrderService(),
        checkout=CheckoutService(session, catalog, config),
        profile=ProfileService(session, config, uploader),
    )
    logger.info(f"Storefront ready for project {env['GCP_PROJECT_ID']}")
    return storefront
