"""Exception hierarchy for the tutor router"""

from typing import Any
from datetime import datetime


class TutorRouterError(Exception):
    """Base exception with context and a user-facing message"""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        """
        Initialize exception with context.

        Args:
            message: Technical error message for logs
            details: Additional context (dict for structured logging)
            user_message: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or message
        self.timestamp = datetime.now()

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({details_str})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "user_message": self.user_message,
            "timestamp": self.timestamp.isoformat(),
        }


class GenerationError(TutorRouterError):
    """The generative text service failed (network, quota, model, timeout)"""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        if status_code == 429:
            user_message = "API rate limit exceeded. Please try again in a moment."
        elif status_code == 401:
            user_message = "API authentication failed. Please check your API key."
        elif status_code == 503:
            user_message = "Service temporarily unavailable. Please try again."
        else:
            user_message = "An error occurred while calling the LLM API."

        super().__init__(message=message, details=details, user_message=user_message)
        self.status_code = status_code


class ClassificationError(TutorRouterError):
    """Wraps a GenerationError raised during the classification call"""

    def __init__(self, message: str, cause: GenerationError | None = None):
        details = {}
        if cause is not None:
            details["cause"] = type(cause).__name__
        super().__init__(
            message=message,
            details=details,
            user_message=cause.user_message if cause else "The question could not be classified.",
        )
        self.cause = cause


class RecoveryError(TutorRouterError):
    """No classification label could be reconstructed from the model output"""

    def __init__(self, message: str, raw_text: str):
        super().__init__(
            message=message,
            details={"raw_length": len(raw_text)},
            user_message="The classifier returned an unreadable answer.",
        )
        self.raw_text = raw_text


class MissingQueryError(TutorRouterError):
    """The conversation holds no user turn to answer"""

    def __init__(self, message: str = "No user question found in the message history."):
        super().__init__(message=message, user_message=message)


class ConfigurationError(TutorRouterError):
    """Configuration validation errors"""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(
            message=message,
            details=details,
            user_message=f"Configuration error: {message}",
        )
        self.field = field
        self.value = value
