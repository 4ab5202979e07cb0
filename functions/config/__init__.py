"""Estimate engine configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import (
    EstimateError,
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidMilestoneError,
    InvalidScopeError,
    InvalidStatusTransitionError,
    InvalidTemplateError,
)

__all__ = [
    "settings",
    "EstimateError",
    "ConfigNotFoundError",
    "InvalidConfigError",
    "InvalidMilestoneError",
    "InvalidScopeError",
    "InvalidStatusTransitionError",
    "InvalidTemplateError",
]
