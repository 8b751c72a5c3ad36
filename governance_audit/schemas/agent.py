"""
Pydantic schemas for the base agent contract.

Every governance agent exposes metadata, runs inside an execution
context, and returns an AgentResult carrying exactly one DecisionEvent.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from governance_audit.schemas.decision_event import DecisionEvent


class AgentClassification(str, Enum):
    """Agent classification types."""
    GOVERNANCE_AUDIT = "GOVERNANCE_AUDIT"
    OVERSIGHT = "OVERSIGHT"
    COMPLIANCE_VISIBILITY = "COMPLIANCE_VISIBILITY"
    GOVERNANCE_ANALYSIS = "GOVERNANCE_ANALYSIS"


class AgentMetadata(BaseModel):
    """Static description of an agent."""
    agent_id: str
    agent_version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    classification: AgentClassification
    decision_type: str
    description: str
    capabilities: List[str] = Field(default_factory=list, description="What this agent can do")
    restrictions: List[str] = Field(default_factory=list, description="What this agent must not do")
    consumers: List[str] = Field(default_factory=list, description="Systems that may consume output")


class CallerInfo(BaseModel):
    """Caller identity (for audit)."""
    service: str
    version: Optional[str] = None
    trace_id: Optional[str] = None


class TelemetryContext(BaseModel):
    """Optional telemetry correlation."""
    trace_id: str
    span_id: str
    parent_span_id: Optional[str] = None


class AgentContext(BaseModel):
    """Execution context for one agent invocation."""
    execution_ref: str
    request_timestamp: datetime
    caller: CallerInfo
    organization_id: str
    telemetry_context: Optional[TelemetryContext] = None


class AgentError(BaseModel):
    """Error details for a failed invocation."""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AgentResult(BaseModel):
    """Agent execution result. The decision event is always present."""
    success: bool
    decision_event: DecisionEvent
    output: Optional[Dict[str, Any]] = None
    error: Optional[AgentError] = None
