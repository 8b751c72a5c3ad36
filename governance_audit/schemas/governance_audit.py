"""
Pydantic schemas for the Governance Audit Agent contract.

Classification: GOVERNANCE_AUDIT
Decision type: audit_summary

The agent provides audit and compliance visibility across governance
policies, decision trails, and organizational adherence. It is strictly
read-only: it never enforces policies, modifies configuration, approves
or rejects changes, or talks to SQL.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from governance_audit.schemas.agent import AgentClassification, AgentMetadata


class AuditCategory(str, Enum):
    """Audit categories an audit can be scoped to."""
    POLICY_COMPLIANCE = "policy_compliance"
    ACCESS_CONTROL = "access_control"
    COST_GOVERNANCE = "cost_governance"
    MODEL_USAGE = "model_usage"
    DATA_GOVERNANCE = "data_governance"
    CHANGE_MANAGEMENT = "change_management"
    APPROVAL_TRAILS = "approval_trails"


class ApprovalStatus(str, Enum):
    """Approval outcome recorded on a decision trail."""
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    NOT_REQUIRED = "not_required"


class DecisionComplianceStatus(str, Enum):
    """Compliance outcome recorded on a decision trail."""
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    UNKNOWN = "unknown"


class PolicyScope(str, Enum):
    """Organizational scope of a policy."""
    ORGANIZATION = "organization"
    TEAM = "team"
    USER = "user"
    GLOBAL = "global"


class FindingSeverity(str, Enum):
    """Severity of an audit finding."""
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplianceLevel(str, Enum):
    """Per-category compliance rollup."""
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NON_COMPLIANT = "non_compliant"
    NOT_EVALUATED = "not_evaluated"


class CoverageLevel(str, Enum):
    """How well active policies address an audit category."""
    NONE = "none"
    PARTIAL = "partial"
    ADEQUATE = "adequate"
    COMPREHENSIVE = "comprehensive"


class RecommendationPriority(str, Enum):
    """Priority of a governance recommendation."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ============================================================================
# INPUT SCHEMAS
# ============================================================================

class DecisionTrailRecord(BaseModel):
    """One historical governance decision supplied by upstream systems."""
    decision_event_id: str = Field(..., description="Decision event reference")
    agent_id: str = Field(..., description="Agent that produced the decision")
    decision_type: str = Field(..., description="Decision type")
    organization_id: str = Field(..., description="Organization context")
    timestamp: datetime = Field(..., description="Timestamp of the decision")
    approval_status: ApprovalStatus
    compliance_status: DecisionComplianceStatus
    category: Optional[AuditCategory] = Field(None, description="Audit category the decision belongs to")
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        frozen = True


class PolicySnapshot(BaseModel):
    """Point-in-time view of one governance policy."""
    policy_id: str
    policy_name: str
    is_active: bool
    rule_count: int = Field(..., ge=0, description="Number of rules in this policy")
    scope: PolicyScope
    last_modified: datetime
    categories: List[AuditCategory] = Field(..., description="Categories this policy covers")

    class Config:
        frozen = True


class TimeRange(BaseModel):
    """Time window of an audit."""
    start: datetime
    end: datetime


class AuditScope(BaseModel):
    """What an audit should analyze."""
    categories: List[AuditCategory]
    include_compliance: bool
    include_policy_coverage: bool


class AuditFilters(BaseModel):
    """Optional filters recorded in the constraints block."""
    team_ids: Optional[List[str]] = None
    agent_ids: Optional[List[str]] = None
    decision_types: Optional[List[str]] = None


class GovernanceAuditInput(BaseModel):
    """Input schema for the Governance Audit Agent."""
    request_id: str = Field(..., description="Request identifier for tracing")
    organization_id: str = Field(..., description="Organization to audit")
    time_range: TimeRange
    audit_scope: AuditScope
    decision_trails: List[DecisionTrailRecord]
    policy_snapshots: List[PolicySnapshot]
    filters: Optional[AuditFilters] = None


# ============================================================================
# OUTPUT SCHEMAS
# ============================================================================

class AuditFinding(BaseModel):
    """Individual audit finding."""
    finding_id: str
    category: AuditCategory
    severity: FindingSeverity
    title: str
    description: str
    affected_entities: List[str] = Field(default_factory=list)
    evidence: List[str] = Field(default_factory=list)
    remediation: List[str] = Field(default_factory=list)


class ComplianceStatus(BaseModel):
    """Compliance status for a category."""
    category: AuditCategory
    status: ComplianceLevel
    compliance_percentage: float = Field(..., ge=0, le=100)
    total_evaluated: int = Field(..., ge=0)
    compliant_count: int = Field(..., ge=0)
    non_compliant_count: int = Field(..., ge=0)


class PolicyCoverage(BaseModel):
    """Policy coverage analysis for a category."""
    category: AuditCategory
    policies_count: int = Field(..., ge=0)
    rules_count: int = Field(..., ge=0)
    coverage_level: CoverageLevel
    gaps: List[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """Governance improvement recommendation."""
    recommendation_id: str
    priority: RecommendationPriority
    category: AuditCategory
    description: str
    action_items: List[str] = Field(default_factory=list)


class GovernanceAuditOutput(BaseModel):
    """
    Output schema for the Governance Audit Agent.

    decision_type: "audit_summary"
    """
    audit_findings: List[AuditFinding]
    compliance_status: List[ComplianceStatus]
    policy_coverage: List[PolicyCoverage]
    audit_score: float = Field(..., ge=0, le=100, description="Overall audit score (0-100)")
    total_decisions_audited: int = Field(..., ge=0)
    total_policies_evaluated: int = Field(..., ge=0)
    recommendations: List[Recommendation]


# ============================================================================
# AGENT METADATA
# ============================================================================

GOVERNANCE_AUDIT_AGENT_METADATA = AgentMetadata(
    agent_id="governance-audit-agent",
    agent_version="1.0.0",
    classification=AgentClassification.GOVERNANCE_AUDIT,
    decision_type="audit_summary",
    description=(
        "Provides audit and compliance visibility across governance policies, "
        "decision trails, and organizational adherence"
    ),
    capabilities=[
        "aggregate_audit_signals",
        "evaluate_compliance_status",
        "measure_policy_coverage",
        "produce_audit_scores",
        "generate_compliance_recommendations",
    ],
    restrictions=[
        "does_not_enforce_policies",
        "does_not_modify_configurations",
        "does_not_approve_or_reject",
        "does_not_connect_to_sql",
        "read_only_analysis",
    ],
    consumers=[
        "Governance & compliance dashboards",
        "Audit reporting systems",
        "Management reporting",
        "Regulatory compliance tools",
    ],
)
