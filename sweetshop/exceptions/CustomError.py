"""Custom exception classes for the storefront."""

from typing import Optional, Dict, Any, List


class ProjectError(Exception):
    """Base exception class for storefront errors."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize ProjectError.

        Args:
            message: Error message
            code: Optional error code
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code or "PROJECT_ERROR"
        self.details = details or {}

    @property
    def user_message(self) -> str:
        """Message safe to show in a user notification."""
        return self.message


class ValidationError(ProjectError):
    """Raised when input validation fails, before any remote call."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize ValidationError.

        Args:
            message: Error message
            field: Optional field that failed validation
            details: Optional additional error details
        """
        if field:
            details = details or {}
            details["field"] = field

        super().__init__(message, code="VALIDATION_ERROR", details=details)


class NotSignedInError(ProjectError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Please sign in to continue."):
        super().__init__(message, code="UNAUTHENTICATED")


class PermissionError(ProjectError):
    """Raised when the document store or an ownership check denies access."""

    def __init__(self, message: str = "Permission denied", resource: Optional[str] = None):
        """Initialize PermissionError.

        Args:
            message: Error message, surfaced verbatim to the user
            resource: Optional resource that was denied
        """
        details = {"resource": resource} if resource else {}
        super().__init__(message, code="PERMISSION_DENIED", details=details)


class NotFoundError(ProjectError):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        """Initialize NotFoundError.

        Args:
            resource_type: Type of resource not found
            resource_id: ID of resource not found
        """
        message = f"{resource_type} with ID '{resource_id}' not found"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, code="NOT_FOUND", details=details)


class DuplicateError(ProjectError):
    """Raised when attempting to create a duplicate resource."""

    def __init__(self, resource_type: str, identifier: str, message: Optional[str] = None):
        """Initialize DuplicateError.

        Args:
            resource_type: Type of resource
            identifier: Identifier that already exists
            message: Optional user-facing message
        """
        message = message or f"{resource_type} with identifier '{identifier}' already exists"
        details = {
            "resource_type": resource_type,
            "identifier": identifier
        }
        super().__init__(message, code="DUPLICATE", details=details)


class IneligibleError(ProjectError):
    """Raised when a user may not review a product."""

    def __init__(self, message: str, state: str):
        super().__init__(message, code="INELIGIBLE", details={"state": state})


class MissingIndexError(ProjectError):
    """Raised when a compound query needs a composite index that is not deployed."""

    def __init__(self, collection: str, message: Optional[str] = None):
        message = message or (
            "Database requires a new index for this query. "
            "Please contact support or try again later."
        )
        super().__init__(message, code="FAILED_PRECONDITION", details={"collection": collection})


class PartialWriteError(ProjectError):
    """Raised when a sequence of writes stopped part way. Completed writes are not rolled back."""

    def __init__(self, operation: str, completed: List[str], failed: str, cause: Optional[str] = None):
        """Initialize PartialWriteError.

        Args:
            operation: Name of the operation that was interrupted
            completed: Document paths written before the failure
            failed: Document path whose write failed
            cause: Optional underlying error message
        """
        message = f"{operation} only partially completed: write to '{failed}' failed"
        details = {
            "operation": operation,
            "completed": completed,
            "failed": failed,
            "cause": cause,
        }
        super().__init__(message, code="PARTIAL_WRITE", details=details)

    @property
    def user_message(self) -> str:
        return "Something went wrong while saving. Please try again."


class ExternalServiceError(ProjectError):
    """Raised when an external service fails."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        """Initialize ExternalServiceError.

        Args:
            service: Name of the external service
            message: Error message
            status_code: Optional HTTP status code
        """
        details = {
            "service": service,
            "status_code": status_code
        }
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", details=details)


AUTH_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with this email.",
    "INVALID_PASSWORD": "Incorrect password. Please try again.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "EMAIL_EXISTS": "An account with this email already exists.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "MISSING_PASSWORD": "Please enter your password.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "OPERATION_NOT_ALLOWED": "This sign-in method is not enabled.",
    "INVALID_IDP_RESPONSE": "Sign in with this provider failed. Please try again.",
    "FEDERATED_USER_ID_ALREADY_LINKED": "This account is already linked to another user.",
    "INVALID_ID_TOKEN": "Your session has expired. Please sign in again.",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again.",
    "USER_NOT_FOUND": "No account found for this session.",
}


class AuthenticationError(ProjectError):
    """Raised when the identity provider rejects a sign-in, sign-up or session."""

    def __init__(self, provider_code: str, message: Optional[str] = None):
        """Initialize AuthenticationError.

        Args:
            provider_code: Error code returned by the identity provider, e.g. EMAIL_EXISTS
            message: Optional raw provider message
        """
        # Identity Toolkit appends detail after a colon, e.g. "WEAK_PASSWORD : Password should be..."
        code = (provider_code or "UNKNOWN").split(":")[0].strip()
        super().__init__(message or code, code="AUTH_ERROR", details={"provider_code": code})
        self.provider_code = code

    @property
    def user_message(self) -> str:
        return AUTH_ERROR_MESSAGES.get(self.provider_code, "An error occurred. Please try again.")
