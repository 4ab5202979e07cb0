"""Scope parsing and validation at the API boundary.

Raw scope payloads arrive as camelCase dictionaries (UI forms, stored
templates) or snake_case dictionaries (scripts). They are parsed into a
frozen ScopeModel here, so the calculator only ever sees valid scopes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
import structlog

from config.errors import InvalidScopeError
from models.scope import ScopeModel

logger = structlog.get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of scope validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    parsed: Optional[ScopeModel] = None


def _format_errors(exc: PydanticValidationError) -> List[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc']) or 'scope'}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_scope(data: Any, require_rooms: bool = False) -> ScopeModel:
    """Parse raw scope data into a ScopeModel.

    Args:
        data: Scope dictionary (camelCase or snake_case keys), or a ScopeModel.
        require_rooms: Reject an empty room list.

    Returns:
        Validated ScopeModel.

    Raises:
        InvalidScopeError: If the scope is malformed.
    """
    if isinstance(data, ScopeModel):
        scope = data
    else:
        if not isinstance(data, dict):
            raise InvalidScopeError("Scope must be a dictionary")
        try:
            scope = ScopeModel.model_validate(data)
        except PydanticValidationError as e:
            errors = _format_errors(e)
            logger.warning("scope_parse_failed", errors=errors)
            raise InvalidScopeError(
                f"Invalid scope: {errors[0]}",
                details={"errors": errors},
            ) from e

    if require_rooms and not scope.rooms:
        raise InvalidScopeError("Scope must list at least one room", field="rooms")
    return scope


def validate_scope(data: Dict[str, Any], require_rooms: bool = False) -> ValidationResult:
    """Validate scope data and return a result instead of raising.

    Args:
        data: Raw scope dictionary.
        require_rooms: Reject an empty room list.

    Returns:
        ValidationResult with is_valid, errors, and parsed scope.
    """
    try:
        parsed = parse_scope(data, require_rooms=require_rooms)
    except InvalidScopeError as e:
        errors = e.details.get("errors") or [e.message]
        return ValidationResult(is_valid=False, errors=errors, parsed=None)
    return ValidationResult(is_valid=True, errors=[], parsed=parsed)
