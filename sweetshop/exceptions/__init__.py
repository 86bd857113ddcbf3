"""Custom exceptions for the storefront."""

from .CustomError import (
    ProjectError,
    ValidationError,
    NotSignedInError,
    PermissionError,
    NotFoundError,
    DuplicateError,
    IneligibleError,
    MissingIndexError,
    PartialWriteError,
    ExternalServiceError,
    AuthenticationError,
    AUTH_ERROR_MESSAGES,
)

__all__ = [
    "ProjectError",
    "ValidationError",
    "NotSignedInError",
    "PermissionError",
    "NotFoundError",
    "DuplicateError",
    "IneligibleError",
    "MissingIndexError",
    "PartialWriteError",
    "ExternalServiceError",
    "AuthenticationError",
    "AUTH_ERROR_MESSAGES",
]
