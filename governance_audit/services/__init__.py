"""
Services for the Governance Audit Agent.

- GovernanceAuditAgent: Validates, analyzes and wraps each audit in a DecisionEvent
- DecisionEventEmitter: Builds and persists the DecisionEvent envelope
- RuvectorClient: HTTP client for the append-only decision event store
- TelemetryEmitter: Fire-and-forget invocation telemetry
"""

from governance_audit.services.decision_event_emitter import DecisionEventEmitter
from governance_audit.services.factory import (
    create_governance_audit_agent,
    create_governance_audit_agent_for_testing,
    create_governance_audit_agent_from_settings,
)
from governance_audit.services.governance_audit_agent import GovernanceAuditAgent
from governance_audit.services.ruvector_client import (
    ConfigurationError,
    RetryPolicy,
    RuvectorClient,
    RuvectorError,
)
from governance_audit.services.telemetry import TelemetryEmitter

__all__ = [
    "GovernanceAuditAgent",
    "DecisionEventEmitter",
    "RuvectorClient",
    "RuvectorError",
    "RetryPolicy",
    "ConfigurationError",
    "TelemetryEmitter",
    "create_governance_audit_agent",
    "create_governance_audit_agent_from_settings",
    "create_governance_audit_agent_for_testing",
]
