"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from core.exceptions import (
    ApplicationException,
    ValidationException,
    InvalidIssueDataException,
    ResourceNotFoundException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "ValidationException",
    "InvalidIssueDataException",
    "ResourceNotFoundException",
    "ConfigurationException",
]
