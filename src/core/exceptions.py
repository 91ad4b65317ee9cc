"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class InvalidIssueDataException(ValidationException):
    """Raised when an issue snapshot lacks data the SLA clocks need."""

    def __init__(
        self,
        issue_key: Optional[str],
        reason: str,
        details: Optional[dict] = None
    ):
        self.issue_key = issue_key
        super().__init__(
            f"Invalid issue data for {issue_key or '<unknown>'}: {reason}",
            details or {"issue_key": issue_key, "reason": reason}
        )


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""
