"""
Pydantic schemas for the DecisionEvent envelope.

Every agent invocation emits exactly ONE DecisionEvent, persisted to
ruvector-service.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DecisionType(str, Enum):
    """Decision types for governance agents."""
    USAGE_OVERSIGHT_SIGNAL = "usage_oversight_signal"
    # Audit agents
    AUDIT_SUMMARY = "audit_summary"
    COMPLIANCE_STATUS = "compliance_status"
    GOVERNANCE_SNAPSHOT = "governance_snapshot"
    # Policy agents
    POLICY_ADHERENCE_REPORT = "policy_adherence_report"
    POLICY_CHANGE_RECORD = "policy_change_record"
    # Approval agents
    APPROVAL_TRAIL_SUMMARY = "approval_trail_summary"
    APPROVAL_DECISION = "approval_decision"
    CHANGE_IMPACT_ASSESSMENT = "change_impact_assessment"
    # Signals are emitted, never auto-enforced
    COST_RISK_SIGNAL = "cost_risk_signal"
    BUDGET_THRESHOLD_SIGNAL = "budget_threshold_signal"
    POLICY_VIOLATION_SIGNAL = "policy_violation_signal"
    APPROVAL_REQUIRED_SIGNAL = "approval_required_signal"


class ConfidenceBand(BaseModel):
    """Uncertainty range for numerical assessments."""
    lower: float
    upper: float


class Confidence(BaseModel):
    """
    Confidence semantics for governance decisions.

    - coverage: share of relevant data analyzed (0-1)
    - completeness: share of expected output sections present (0-1)
    - overall: combined score (0-1)
    """
    coverage: float = Field(..., ge=0, le=1)
    completeness: float = Field(..., ge=0, le=1)
    confidence_band: Optional[ConfidenceBand] = None
    overall: float = Field(..., ge=0, le=1)


class OrgBoundaries(BaseModel):
    """Organizational scope of the analysis."""
    organization_id: str
    team_ids: Optional[List[str]] = None
    user_ids: Optional[List[str]] = None
    teams: Optional[List[str]] = None


class TimeWindow(BaseModel):
    """Temporal scope of the analysis."""
    start: datetime
    end: datetime


class ConstraintsApplied(BaseModel):
    """Constraints applied during decision making."""
    policy_scope: Optional[List[str]] = Field(None, description="Policies considered during analysis")
    org_boundaries: OrgBoundaries
    time_window: Optional[TimeWindow] = None
    compliance_rules: Optional[List[str]] = None
    analysis_scope: Optional[Dict[str, Any]] = None


class EventTelemetry(BaseModel):
    """Telemetry metadata attached to an event."""
    latency_ms: float
    memory_mb: Optional[float] = None
    source_system: Optional[str] = None


class DecisionEvent(BaseModel):
    """Core DecisionEvent envelope."""
    id: UUID
    agent_id: str
    agent_version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    decision_type: DecisionType
    inputs_hash: str = Field(..., description="SHA-256 hash of the inputs for audit trail")
    outputs: Dict[str, Any]
    confidence: Confidence
    constraints_applied: ConstraintsApplied
    execution_ref: str = Field(..., description="Originating execution (request ID, trace ID)")
    timestamp: datetime
    telemetry: Optional[EventTelemetry] = None
