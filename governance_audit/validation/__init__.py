"""
Validation module for the Governance Audit Agent.

Provides the pre- and post-analysis schema checkpoints.
"""

from .contracts import (
    ContractValidationError,
    InvalidInputError,
    InvalidOutputError,
    ValidationErrorCode,
    validate_decision_event,
    validate_governance_audit_input,
    validate_governance_audit_output,
)

__all__ = [
    "ContractValidationError",
    "InvalidInputError",
    "InvalidOutputError",
    "ValidationErrorCode",
    "validate_decision_event",
    "validate_governance_audit_input",
    "validate_governance_audit_output",
]
