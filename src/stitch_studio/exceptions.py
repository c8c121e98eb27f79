"""Centralized exception classes for stitch-studio.

This module provides a hierarchy of exceptions for better error handling
and user-friendly error messages throughout the application.
"""


class StitchStudioError(Exception):
    """Base exception for all stitch-studio errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: User-friendly error message.
            details: Additional technical details for debugging.
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class ConfigurationError(StitchStudioError):
    """Raised when configuration is missing or invalid."""

    pass


class ValidationError(StitchStudioError):
    """Raised when input validation fails (e.g. an empty prompt)."""

    pass


class InvalidTransitionError(StitchStudioError):
    """Raised when an action is not allowed in the current orchestrator state."""

    pass


class APIError(StitchStudioError):
    """Base class for errors returned by the generation or stitch services."""

    pass


class SubmissionError(APIError):
    """Raised when a generation job cannot be submitted."""

    pass


class NetworkError(SubmissionError):
    """Raised when the service is unreachable or the transport fails."""

    pass


class GenerationFailedError(APIError):
    """Raised when a generation job reaches the failed state."""

    pass


class MalformedResultError(APIError):
    """Raised when a job succeeds but its payload is unusable."""

    pass


class MergeFailedError(APIError):
    """Raised when the stitch service fails to merge the session clips."""

    pass


class PersistenceError(StitchStudioError):
    """Raised when writing to the video library fails."""

    pass


class VideoNotFoundError(PersistenceError, ValueError):
    """Raised when a library video doesn't exist."""

    pass
