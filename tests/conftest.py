"""
Shared pytest fixtures for governance audit tests.
"""

import pytest
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from governance_audit.schemas.agent import AgentContext, CallerInfo
from governance_audit.schemas.governance_audit import GovernanceAuditInput


# ============================================================================
# DECISION TRAIL FIXTURES
# ============================================================================

@pytest.fixture
def make_trail() -> Callable[..., Dict[str, Any]]:
    """Factory for raw decision trail records."""
    def _make_trail(
        index: int,
        compliance_status: str = "compliant",
        approval_status: str = "approved",
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        trail = {
            "decision_event_id": f"evt-{index:03d}",
            "agent_id": "cost-guard-agent",
            "decision_type": "policy_evaluation",
            "organization_id": "org-acme",
            "timestamp": "2025-01-15T10:00:00Z",
            "approval_status": approval_status,
            "compliance_status": compliance_status,
        }
        if category is not None:
            trail["category"] = category
        return trail
    return _make_trail


@pytest.fixture
def make_trails(make_trail) -> Callable[..., List[Dict[str, Any]]]:
    """Factory for a batch of trails with the first N non-compliant."""
    def _make_trails(total: int, non_compliant: int = 0, pending: int = 0) -> List[Dict[str, Any]]:
        return [
            make_trail(
                i,
                compliance_status="non_compliant" if i < non_compliant else "compliant",
                approval_status="pending" if i < pending else "approved",
            )
            for i in range(total)
        ]
    return _make_trails


# ============================================================================
# POLICY FIXTURES
# ============================================================================

@pytest.fixture
def make_policy() -> Callable[..., Dict[str, Any]]:
    """Factory for raw policy snapshots."""
    def _make_policy(
        policy_id: str,
        categories: Optional[List[str]] = None,
        rule_count: int = 5,
        is_active: bool = True,
    ) -> Dict[str, Any]:
        return {
            "policy_id": policy_id,
            "policy_name": f"Policy {policy_id}",
            "is_active": is_active,
            "rule_count": rule_count,
            "scope": "organization",
            "last_modified": "2025-01-01T00:00:00Z",
            "categories": categories if categories is not None else ["policy_compliance"],
        }
    return _make_policy


@pytest.fixture
def comprehensive_policies(make_policy) -> List[Dict[str, Any]]:
    """Two active policies with 10 rules covering policy_compliance."""
    return [
        make_policy("pol-001", rule_count=5),
        make_policy("pol-002", rule_count=5),
    ]


# ============================================================================
# AUDIT INPUT FIXTURES
# ============================================================================

@pytest.fixture
def make_audit_input() -> Callable[..., Dict[str, Any]]:
    """Factory for raw GovernanceAuditInput payloads."""
    def _make_audit_input(
        decision_trails: Optional[List[Dict[str, Any]]] = None,
        policy_snapshots: Optional[List[Dict[str, Any]]] = None,
        categories: Optional[List[str]] = None,
        include_compliance: bool = True,
        include_policy_coverage: bool = True,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = {
            "request_id": "req-001",
            "organization_id": "org-acme",
            "time_range": {
                "start": "2025-01-01T00:00:00Z",
                "end": "2025-01-31T23:59:59Z",
            },
            "audit_scope": {
                "categories": categories if categories is not None else ["policy_compliance"],
                "include_compliance": include_compliance,
                "include_policy_coverage": include_policy_coverage,
            },
            "decision_trails": decision_trails or [],
            "policy_snapshots": policy_snapshots or [],
        }
        if filters is not None:
            payload["filters"] = filters
        return payload
    return _make_audit_input


@pytest.fixture
def build_input(make_audit_input) -> Callable[..., GovernanceAuditInput]:
    """Factory for validated GovernanceAuditInput models."""
    def _build_input(**kwargs: Any) -> GovernanceAuditInput:
        return GovernanceAuditInput.model_validate(make_audit_input(**kwargs))
    return _build_input


# ============================================================================
# AGENT FIXTURES
# ============================================================================

@pytest.fixture
def agent_context() -> AgentContext:
    """Execution context for agent invocations."""
    return AgentContext(
        execution_ref="exec-001",
        request_timestamp=datetime(2025, 2, 1, 9, 0, 0),
        caller=CallerInfo(service="governance-dashboard", version="2.1.0"),
        organization_id="org-acme",
    )
