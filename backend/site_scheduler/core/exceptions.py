"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class SchedulerError(Exception):
    """Base exception for site_scheduler."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(SchedulerError):
    """Resource not found."""

    pass


class InfrastructureError(SchedulerError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class BusinessLogicError(SchedulerError):
    """Business logic constraint violation."""

    pass
