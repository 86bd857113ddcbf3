"""
Configuration loader for the Sweetshop storefront.
Loads and validates settings from settings.yaml.
"""

import yaml
from typing import TypedDict, List, Optional
from pathlib import Path

from sweetshop.models.firestore_types import REVIEW_MAX_RATING, REVIEW_MAX_TEXT_LENGTH, REVIEW_MIN_RATING


class CurrencyConfig(TypedDict, total=False):
    code: str
    decimals: int


class ReviewsConfig(TypedDict, total=False):
    min_rating: int
    max_rating: int
    max_text_length: int


class WishlistConfig(TypedDict, total=False):
    schema: str
    migrate_legacy: bool


class CatalogConfig(TypedDict, total=False):
    cache_key: str
    placeholder_image: str
    categories: List[str]


class ProfileConfig(TypedDict, total=False):
    avatar_url_template: str
    default_name: str


class CouponConfig(TypedDict, total=False):
    code: str
    discount_type: str
    value: float
    max_discount: float
    min_order_value: float


class CheckoutConfig(TypedDict, total=False):
    coupons: List[CouponConfig]


class AppConfig(TypedDict, total=False):
    currency: CurrencyConfig
    reviews: ReviewsConfig
    wishlist: WishlistConfig
    catalog: CatalogConfig
    profile: ProfileConfig
    checkout: CheckoutConfig


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


WISHLIST_SCHEMAS = ["users", "legacy"]


def _validate_config(config: dict) -> None:
    """
    Validate configuration values.

    Raises:
        ConfigValidationError: If validation fails
    """
    currency = config.get("currency", {})
    if "code" in currency:
        if not isinstance(currency["code"], str) or not currency["code"].strip():
            raise ConfigValidationError("currency.code must be a non-empty string")
    if "decimals" in currency:
        decimals = currency["decimals"]
        if not isinstance(decimals, int) or decimals < 0:
            raise ConfigValidationError("currency.decimals must be int >= 0")

    reviews = config.get("reviews", {})
    for key in ["min_rating", "max_rating", "max_text_length"]:
        if key in reviews:
            value = reviews[key]
            if not isinstance(value, int) or value <= 0:
                raise ConfigValidationError(f"reviews.{key} must be a positive integer")
    if reviews.get("max_rating", REVIEW_MAX_RATING) > REVIEW_MAX_RATING:
        raise ConfigValidationError(f"reviews.max_rating must not exceed {REVIEW_MAX_RATING}")
    if reviews.get("max_text_length", REVIEW_MAX_TEXT_LENGTH) > REVIEW_MAX_TEXT_LENGTH:
        raise ConfigValidationError(f"reviews.max_text_length must not exceed {REVIEW_MAX_TEXT_LENGTH}")
    if reviews.get("min_rating", 1) > reviews.get("max_rating", 5):
        raise ConfigValidationError("reviews.min_rating must not exceed reviews.max_rating")

    wishlist = config.get("wishlist", {})
    if "schema" in wishlist and wishlist["schema"] not in WISHLIST_SCHEMAS:
        raise ConfigValidationError(f"wishlist.schema must be one of {WISHLIST_SCHEMAS}")
    if "migrate_legacy" in wishlist and not isinstance(wishlist["migrate_legacy"], bool):
        raise ConfigValidationError("wishlist.migrate_legacy must be a boolean")

    catalog = config.get("catalog", {})
    if "cache_key" in catalog:
        if not isinstance(catalog["cache_key"], str) or not catalog["cache_key"].strip():
            raise ConfigValidationError("catalog.cache_key must be a non-empty string")
    if "categories" in catalog:
        categories = catalog["categories"]
        if not isinstance(categories, list) or not all(isinstance(c, str) for c in categories):
            raise ConfigValidationError("catalog.categories must be a list of strings")
        if len(set(categories)) != len(categories):
            raise ConfigValidationError("catalog.categories contains duplicates")

    profile = config.get("profile", {})
    if "avatar_url_template" in profile:
        template = profile["avatar_url_template"]
        if not isinstance(template, str) or "{seed}" not in template:
            raise ConfigValidationError("profile.avatar_url_template must contain a {seed} placeholder")

    checkout = config.get("checkout", {})
    coupons = checkout.get("coupons", [])
    if not isinstance(coupons, list):
        raise ConfigValidationError("checkout.coupons must be a list")
    seen_codes = set()
    for index, coupon in enumerate(coupons):
        if not isinstance(coupon, dict) or not isinstance(coupon.get("code"), str) or not coupon["code"].strip():
            raise ConfigValidationError(f"checkout.coupons[{index}].code must be a non-empty string")
        code = coupon["code"].strip().upper()
        if code in seen_codes:
            raise ConfigValidationError(f"checkout.coupons contains duplicate code {code}")
        seen_codes.add(code)
        if coupon.get("discount_type", "percent") not in ("percent", "flat"):
            raise ConfigValidationError(f"checkout.coupons[{index}].discount_type must be percent or flat")
        value = coupon.get("value")
        if not isinstance(value, (int, float)) or value <= 0:
            raise ConfigValidationError(f"checkout.coupons[{index}].value must be a positive number")
        if coupon.get("discount_type", "percent") == "percent" and value > 100:
            raise ConfigValidationError(f"checkout.coupons[{index}].value must not exceed 100 for percent coupons")


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load and validate application configuration from settings.yaml.

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    if config_path is None:
        config_path = Path(__file__).parent / "settings.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML configuration: {e}")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration must be a YAML dictionary")

    _validate_config(config)

    return config


DEFAULT_CATEGORIES = [
    "Cakes & Pastries",
    "Cupcakes",
    "Cookies & Brownies",
    "Ice Cream & Sorbets",
    "Chocolates & Confections",
    "Pies & Tarts",
    "Specialty Desserts",
    "Beverages",
]


def get_currency_code(config: AppConfig) -> str:
    return config.get("currency", {}).get("code", "EGP")


def get_currency_decimals(config: AppConfig) -> int:
    return config.get("currency", {}).get("decimals", 2)


def get_review_limits(config: AppConfig) -> dict:
    """
    Get review validation limits from config.

    Returns:
        Dict with min_rating (default 1), max_rating (default 5) and max_text_length (default 500)
    """
    reviews = config.get("reviews", {})
    return {
        "min_rating": reviews.get("min_rating", REVIEW_MIN_RATING),
        "max_rating": reviews.get("max_rating", REVIEW_MAX_RATING),
        "max_text_length": reviews.get("max_text_length", REVIEW_MAX_TEXT_LENGTH),
    }


def get_wishlist_schema(config: AppConfig) -> str:
    return config.get("wishlist", {}).get("schema", "users")


def should_migrate_legacy_wishlist(config: AppConfig) -> bool:
    return config.get("wishlist", {}).get("migrate_legacy", True)


def get_cache_key(config: AppConfig) -> str:
    return config.get("catalog", {}).get("cache_key", "products_cache")


def get_catalog_categories(config: AppConfig) -> List[str]:
    """
    Get the display order of product categories.

    Returns:
        Category names in display order
    """
    return list(config.get("catalog", {}).get("categories", DEFAULT_CATEGORIES))


def get_placeholder_image(config: AppConfig) -> str:
    return config.get("catalog", {}).get("placeholder_image", "https://via.placeholder.com/150?text=No+Image")


def get_avatar_url(config: AppConfig, seed: str) -> str:
    """
    Build the generated avatar URL used for new social sign-ins.

    Args:
        config: Application configuration
        seed: Seed for the avatar, usually the user's email

    Returns:
        Avatar image URL
    """
    template = config.get("profile", {}).get(
        "avatar_url_template", "https://api.dicebear.com/7.x/initials/svg?seed={seed}"
    )
    return template.format(seed=seed)


def get_default_name(config: AppConfig) -> str:
    return config.get("profile", {}).get("default_name", "New User")


def get_coupons(config: AppConfig) -> List[CouponConfig]:
    """
    Get the coupons accepted at checkout.

    Returns:
        Coupon definitions, empty when none are configured
    """
    return list(config.get("checkout", {}).get("coupons", []))
