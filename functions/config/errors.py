"""Estimate engine error handling.

Custom exceptions and error codes for the pricing engine and its
persistence boundary.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SCOPE = "INVALID_SCOPE"
    INVALID_MILESTONES = "INVALID_MILESTONES"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Pricing Errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"

    # Firestore Errors
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    ESTIMATE_NOT_FOUND = "ESTIMATE_NOT_FOUND"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"


class EstimateError(Exception):
    """Base exception for estimate engine errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize EstimateError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(EstimateError):
    """Validation-specific error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class ConfigNotFoundError(EstimateError):
    """A scope references a room type, tier, or service with no active config."""

    def __init__(
        self,
        config_type: str,
        name: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=ErrorCode.CONFIG_NOT_FOUND,
            message=f"No active {config_type} config named {name!r}",
            details={**(details or {}), "config_type": config_type, "name": name}
        )
        self.config_type = config_type
        self.name = name


class InvalidConfigError(ValidationError):
    """A rate config payload does not match the shape for its type."""

    def __init__(self, message: str, config_type: str, name: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            details={**(details or {}), "config_type": config_type, "name": name},
            code=ErrorCode.INVALID_CONFIG
        )
        self.config_type = config_type
        self.name = name


class InvalidMilestoneError(ValidationError):
    """Milestone percentages fail validation."""

    def __init__(self, message: str, percentages: Any = None):
        super().__init__(
            message=message,
            field="milestonePercentages",
            details={"percentages": [str(p) for p in percentages] if percentages is not None else None},
            code=ErrorCode.INVALID_MILESTONES
        )


class InvalidScopeError(ValidationError):
    """Structurally malformed scope."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            field=field,
            details=details,
            code=ErrorCode.INVALID_SCOPE
        )


class InvalidTemplateError(ValidationError):
    """An estimate used as a template is not one."""

    def __init__(self, message: str, estimate_id: Optional[str] = None):
        super().__init__(
            message=message,
            details={"estimate_id": estimate_id},
            code=ErrorCode.INVALID_TEMPLATE
        )


class InvalidStatusTransitionError(ValidationError):
    """An estimate status change is not allowed from its current status."""

    def __init__(self, current: str, requested: str, estimate_id: Optional[str] = None):
        super().__init__(
            message=f"Cannot move estimate from {current!r} to {requested!r}",
            field="status",
            details={"current": current, "requested": requested, "estimate_id": estimate_id},
            code=ErrorCode.INVALID_STATUS_TRANSITION
        )
        self.current = current
        self.requested = requested
