"""
Contract Validator - Validates agent input and output against schemas.

Input is checked before analysis runs; output is checked before it is
wrapped in a DecisionEvent. A failed output check is a programming bug,
not a recoverable runtime condition.
"""

from enum import Enum
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from governance_audit.schemas.decision_event import DecisionEvent
from governance_audit.schemas.governance_audit import GovernanceAuditInput, GovernanceAuditOutput

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationErrorCode(str, Enum):
    """Error codes for validation failures."""
    INVALID_INPUT = "VALIDATION_INVALID_INPUT"
    INVALID_OUTPUT = "VALIDATION_INVALID_OUTPUT"
    MISSING_REQUIRED_FIELD = "VALIDATION_MISSING_REQUIRED"
    TYPE_MISMATCH = "VALIDATION_TYPE_MISMATCH"
    CONSTRAINT_VIOLATION = "VALIDATION_CONSTRAINT_VIOLATION"


class ContractValidationError(Exception):
    """Raised when a payload does not satisfy its schema."""

    code = ValidationErrorCode.INVALID_INPUT

    def __init__(self, message: str, errors: List[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    @property
    def details(self) -> Dict[str, Any]:
        return {"issues": self.errors}


class InvalidInputError(ContractValidationError):
    """Raw agent input failed schema validation."""
    code = ValidationErrorCode.INVALID_INPUT


class InvalidOutputError(ContractValidationError):
    """Agent output failed schema validation (indicates a bug)."""
    code = ValidationErrorCode.INVALID_OUTPUT


# Pydantic error types grouped by the code they map to
_MISSING_TYPES = {"missing"}
_CONSTRAINT_PREFIXES = ("greater_than", "less_than", "string_pattern", "too_short", "too_long")


def _issue_code(error_type: str) -> ValidationErrorCode:
    if error_type in _MISSING_TYPES:
        return ValidationErrorCode.MISSING_REQUIRED_FIELD
    if error_type.startswith(_CONSTRAINT_PREFIXES):
        return ValidationErrorCode.CONSTRAINT_VIOLATION
    return ValidationErrorCode.TYPE_MISMATCH


def _collect_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into field/message/code dicts."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "<root>"
        errors.append({
            "field": field,
            "message": error["msg"],
            "code": _issue_code(error["type"]).value,
        })
    return errors


def _validate(
    model: Type[ModelT],
    data: Any,
    context: str,
    error_cls: Type[ContractValidationError]
) -> ModelT:
    if isinstance(data, model):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = _collect_errors(e)
        error_messages = [f"{err['field']}: {err['message']}" for err in errors]
        raise error_cls(
            f"Validation failed for {context}: {'; '.join(error_messages)}",
            errors=errors
        ) from e


def validate_governance_audit_input(data: Any) -> GovernanceAuditInput:
    """
    Validate raw input, raising InvalidInputError if invalid.

    Args:
        data: Raw request payload (usually a parsed JSON dict)

    Returns:
        Parsed GovernanceAuditInput

    Raises:
        InvalidInputError: If validation fails
    """
    return _validate(GovernanceAuditInput, data, "governance audit input", InvalidInputError)


def validate_governance_audit_output(data: Any) -> GovernanceAuditOutput:
    """
    Validate analysis output, raising InvalidOutputError if invalid.

    Raises:
        InvalidOutputError: If validation fails
    """
    return _validate(GovernanceAuditOutput, data, "governance audit output", InvalidOutputError)


def validate_decision_event(data: Any) -> DecisionEvent:
    """
    Validate a DecisionEvent envelope.

    Raises:
        InvalidOutputError: If validation fails
    """
    return _validate(DecisionEvent, data, "decision event", InvalidOutputError)
