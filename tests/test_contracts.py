"""
Contract validation tests.
"""

import pytest

from governance_audit.domain.audit_analysis import analyze_governance_audit
from governance_audit.schemas.governance_audit import GovernanceAuditInput
from governance_audit.validation import (
    ContractValidationError,
    InvalidInputError,
    InvalidOutputError,
    ValidationErrorCode,
    validate_decision_event,
    validate_governance_audit_input,
    validate_governance_audit_output,
)


class TestInputValidation:
    """Pre-analysis checkpoint."""

    def test_valid_input(self, make_audit_input, make_trails, make_policy):
        payload = make_audit_input(
            decision_trails=make_trails(3, non_compliant=1),
            policy_snapshots=[make_policy("pol-001")],
            filters={"team_ids": ["team-a"]},
        )

        audit_input = validate_governance_audit_input(payload)

        assert isinstance(audit_input, GovernanceAuditInput)
        assert len(audit_input.decision_trails) == 3
        assert audit_input.filters.team_ids == ["team-a"]

    def test_accepts_model_instance(self, build_input):
        audit_input = build_input()

        assert validate_governance_audit_input(audit_input) == audit_input

    def test_missing_field(self, make_audit_input):
        payload = make_audit_input()
        del payload["organization_id"]

        with pytest.raises(InvalidInputError) as exc_info:
            validate_governance_audit_input(payload)

        error = exc_info.value
        assert error.code == ValidationErrorCode.INVALID_INPUT
        assert error.message.startswith("Validation failed for governance audit input")
        assert error.errors == [{
            "field": "organization_id",
            "message": "Field required",
            "code": ValidationErrorCode.MISSING_REQUIRED_FIELD.value,
        }]

    def test_unknown_category(self, make_audit_input):
        payload = make_audit_input(categories=["not_a_category"])

        with pytest.raises(InvalidInputError) as exc_info:
            validate_governance_audit_input(payload)

        fields = [e["field"] for e in exc_info.value.errors]
        assert fields == ["audit_scope.categories.0"]
        assert exc_info.value.errors[0]["code"] == ValidationErrorCode.TYPE_MISMATCH.value

    def test_negative_rule_count(self, make_audit_input, make_policy):
        payload = make_audit_input(policy_snapshots=[make_policy("pol-001", rule_count=-1)])

        with pytest.raises(InvalidInputError) as exc_info:
            validate_governance_audit_input(payload)

        issue = exc_info.value.errors[0]
        assert issue["field"] == "policy_snapshots.0.rule_count"
        assert issue["code"] == ValidationErrorCode.CONSTRAINT_VIOLATION.value

    @pytest.mark.parametrize("payload", [None, "audit please", 42, []])
    def test_non_object_input(self, payload):
        with pytest.raises(InvalidInputError):
            validate_governance_audit_input(payload)

    def test_details_carry_issues(self, make_audit_input):
        payload = make_audit_input()
        payload["decision_trails"] = "none"

        with pytest.raises(ContractValidationError) as exc_info:
            validate_governance_audit_input(payload)

        assert exc_info.value.details["issues"][0]["field"] == "decision_trails"


class TestOutputValidation:
    """Post-analysis checkpoint."""

    def test_analyzer_output_is_valid(self, build_input, make_trails):
        output = analyze_governance_audit(build_input(decision_trails=make_trails(5, non_compliant=2)))

        assert validate_governance_audit_output(output) == output

    def test_out_of_range_score(self, build_input):
        data = analyze_governance_audit(build_input()).model_dump()
        data["audit_score"] = 140

        with pytest.raises(InvalidOutputError) as exc_info:
            validate_governance_audit_output(data)

        assert exc_info.value.code == ValidationErrorCode.INVALID_OUTPUT
        assert exc_info.value.errors[0]["field"] == "audit_score"

    def test_bad_decision_event(self):
        with pytest.raises(InvalidOutputError) as exc_info:
            validate_decision_event({"agent_id": "governance-audit-agent"})

        assert "decision event" in exc_info.value.message
