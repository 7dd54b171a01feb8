"""Custom exception hierarchy for the story autosaves API."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Story errors
    STORY_NOT_FOUND = "STORY_NOT_FOUND"

    # Autosave errors
    AUTOSAVE_NOT_FOUND = "AUTOSAVE_NOT_FOUND"

    # Request validation errors
    INVALID_PARAM = "INVALID_PARAM"
    MISSING_PARAM = "MISSING_PARAM"

    # Routing errors
    NO_ROUTE = "NO_ROUTE"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AutosaveApiException(Exception):
    """
    Base exception for all story autosaves API errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class StoryNotFoundError(AutosaveApiException):
    """Parent story not found in database."""

    def __init__(self, story_id: int):
        super().__init__(
            f"Story not found: {story_id}",
            ErrorCode.STORY_NOT_FOUND,
            status_code=404,
            details={"story_id": story_id}
        )


class AutosaveNotFoundError(AutosaveApiException):
    """Autosave not found, or not attached to the requested story."""

    def __init__(self, autosave_id: int):
        super().__init__(
            f"Autosave not found: {autosave_id}",
            ErrorCode.AUTOSAVE_NOT_FOUND,
            status_code=404,
            details={"autosave_id": autosave_id}
        )


class InvalidParamError(AutosaveApiException):
    """One or more request arguments failed schema validation."""

    def __init__(self, params: Dict[str, str]):
        super().__init__(
            f"Invalid parameter(s): {', '.join(sorted(params))}",
            ErrorCode.INVALID_PARAM,
            status_code=400,
            details={"params": params}
        )
        self.params = params


class MissingParamError(AutosaveApiException):
    """A required request argument was not supplied."""

    def __init__(self, params: List[str]):
        super().__init__(
            f"Missing parameter(s): {', '.join(params)}",
            ErrorCode.MISSING_PARAM,
            status_code=400,
            details={"params": params}
        )
        self.params = params


class NoRouteError(AutosaveApiException):
    """No route in the route table matches the request."""

    def __init__(self, namespace: str, path: str, method: str):
        super().__init__(
            f"No route was found matching {method} /{namespace}{path}",
            ErrorCode.NO_ROUTE,
            status_code=404,
            details={"namespace": namespace, "path": path, "method": method}
        )


class AuthenticationError(AutosaveApiException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(AutosaveApiException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class DatabaseError(AutosaveApiException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
