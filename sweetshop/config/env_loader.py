"""
Environment variable loader for the Sweetshop storefront.
Loads and validates the Firebase, identity and image CDN settings.
"""

import os
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv

from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class EnvironmentConfigError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass


def load_environment(env_file: Optional[str] = None) -> None:
    """
    Load environment variables from .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env at the project root.
    """
    if env_file is None:
        env_path = Path(__file__).parent.parent.parent / ".env"
    else:
        env_path = Path(env_file)

    if env_path.exists():
        load_dotenv(env_path)
    else:
        # In production the variables are provided by the host
        logger.warning(f".env file not found at {env_path}, using system environment")


def get_required_env_var(name: str, description: str = "") -> str:
    """
    Get a required environment variable.

    Args:
        name: Environment variable name
        description: Optional description for error messages

    Returns:
        Environment variable value

    Raises:
        EnvironmentConfigError: If the environment variable is not set or empty
    """
    value = os.getenv(name)
    if not value:
        desc_part = f" ({description})" if description else ""

        guidance = ""
        if "API_KEY" in name:
            guidance = "\n  Hint: Copy the Web API key from Firebase console > Project settings > General"
        elif "PROJECT_ID" in name:
            guidance = "\n  Hint: Set this to your Firebase / Google Cloud project ID (e.g., sweetshop-123)"
        elif "CREDENTIALS" in name:
            guidance = "\n  Hint: Set this to the path of your Google service account JSON file"
        elif "CLOUDINARY" in name:
            guidance = "\n  Hint: Find the cloud name on your Cloudinary dashboard"

        raise EnvironmentConfigError(f"Required environment variable {name}{desc_part} is not set{guidance}")
    return value


def get_optional_env_var(name: str, default: str = "", description: str = "") -> str:
    """
    Get an optional environment variable with a default value.

    Args:
        name: Environment variable name
        default: Default value if not set
        description: Optional description for logging

    Returns:
        Environment variable value or default
    """
    return os.getenv(name, default)


REQUIRED_VARS = {
    "GCP_PROJECT_ID": "Firebase project ID used for Firestore",
    "FIREBASE_WEB_API_KEY": "Firebase Web API key used for Identity Toolkit sign-in",
}

OPTIONAL_VARS = {
    "GOOGLE_APPLICATION_CREDENTIALS": "",
    "CLOUDINARY_CLOUD_NAME": "",
    "CLOUDINARY_UPLOAD_PRESET": "ml_default",
    "STOREFRONT_ORIGIN": "",
}


def validate_environment(load: bool = True) -> Dict[str, str]:
    """
    Validate that all required environment variables are present.

    Args:
        load: Whether to load the .env file first

    Returns:
        Dictionary of environment variable names and values

    Raises:
        EnvironmentConfigError: If any required environment variables are missing
    """
    if load:
        load_environment()

    env_values = {}
    missing_vars = []

    for var_name, description in REQUIRED_VARS.items():
        try:
            env_values[var_name] = get_required_env_var(var_name, description)
        except EnvironmentConfigError:
            missing_vars.append(f"  - {var_name}: {description}")

    if missing_vars:
        error_msg = "Missing required environment variables:\n" + "\n".join(missing_vars)
        error_msg += "\n\nTo fix this:"
        error_msg += "\n  1. Copy .env.template to .env: cp .env.template .env"
        error_msg += "\n  2. Edit .env and fill in your Firebase project values"
        raise EnvironmentConfigError(error_msg)

    for var_name, default_value in OPTIONAL_VARS.items():
        env_values[var_name] = get_optional_env_var(var_name, default_value)

    return env_values


def get_google_credentials_path() -> Optional[str]:
    """
    Get the path to Google service account credentials, if configured.

    Raises:
        EnvironmentConfigError: If the path is set but the file doesn't exist
    """
    creds_path = get_optional_env_var("GOOGLE_APPLICATION_CREDENTIALS")
    if not creds_path:
        return None

    if not Path(creds_path).exists():
        raise EnvironmentConfigError(
            f"Google credentials file not found: {creds_path}\n"
            f"  Hint: Download your service account key from Google Cloud Console and update the path"
        )

    return creds_path


def get_cloudinary_config() -> Dict[str, str]:
    """
    Get Cloudinary settings for unsigned profile picture uploads.

    Returns:
        Dictionary with cloud_name and upload_preset

    Raises:
        EnvironmentConfigError: If the cloud name is missing
    """
    return {
        "cloud_name": get_required_env_var("CLOUDINARY_CLOUD_NAME", "Cloudinary cloud name"),
        "upload_preset": get_optional_env_var("CLOUDINARY_UPLOAD_PRESET", "ml_default"),
    }
