"""Exception classes for health data access and aggregation."""

from typing import Optional


class HealthDataError(Exception):
    """Base exception for health data errors."""

    def __init__(self, message: str, user_message: Optional[str] = None, metric: Optional[str] = None):
        """
        Initialize exception with technical and user-friendly messages.

        Args:
            message: Technical error message for logs
            user_message: User-friendly message for display
            metric: Identifier of the metric the error relates to, if any
        """
        super().__init__(message)
        self.user_message = user_message or message
        self.metric = metric


class AuthorizationError(HealthDataError):
    """Health store unavailable or read access denied. Aborts the whole aggregation."""
    pass


class InvalidMetricError(HealthDataError):
    """Metric identifier is not in the registry or not supported by the store."""
    pass


class QueryFailure(HealthDataError):
    """A store query failed or returned data that cannot be interpreted."""
    pass
