"""Configuration package for the storefront."""

from .env_loader import (
    EnvironmentConfigError,
    load_environment,
    get_required_env_var,
    get_optional_env_var,
    validate_environment,
    get_cloudinary_config,
)
from .loader import AppConfig, ConfigValidationError, load_app_config

__all__ = [
    "EnvironmentConfigError",
    "load_environment",
    "get_required_env_var",
    "get_optional_env_var",
    "validate_environment",
    "get_cloudinary_config",
    "AppConfig",
    "ConfigValidationError",
    "load_app_config",
]
