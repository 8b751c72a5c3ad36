"""
Governance audit analysis.

Pure, single-pass analysis of decision trails and policy snapshots that
produces findings, compliance rollups, policy coverage, an audit score
and recommendations.

CRITICAL: This module performs no I/O and holds no state between calls.
Same input MUST produce the same numbers every time; only the generated
finding and recommendation IDs differ between runs.
"""

import math
import uuid
from typing import Dict, List

from pydantic import BaseModel, Field

from governance_audit.schemas.governance_audit import (
    AuditCategory,
    AuditFinding,
    ApprovalStatus,
    ComplianceLevel,
    ComplianceStatus,
    CoverageLevel,
    DecisionComplianceStatus,
    DecisionTrailRecord,
    FindingSeverity,
    GovernanceAuditInput,
    GovernanceAuditOutput,
    PolicyCoverage,
    Recommendation,
    RecommendationPriority,
)

# Affected-entity cap for decision-based findings
MAX_AFFECTED_DECISIONS = 10

COMPLIANT_THRESHOLD = 95.0
PARTIALLY_COMPLIANT_THRESHOLD = 70.0

COVERAGE_LEVEL_SCORES = {
    CoverageLevel.NONE: 0,
    CoverageLevel.PARTIAL: 33,
    CoverageLevel.ADEQUATE: 66,
    CoverageLevel.COMPREHENSIVE: 100,
}


class CategoryCounts(BaseModel):
    """Decision counts for one requested category."""
    total: int = 0
    compliant: int = 0
    non_compliant: int = 0


class AuditAnalysisState(BaseModel):
    """Counters gathered in one scan over the decision trails."""
    total_decisions: int = 0
    compliant_decisions: int = 0
    non_compliant_decisions: int = 0
    pending_approvals: int = 0
    category_counts: Dict[AuditCategory, CategoryCounts] = Field(default_factory=dict)


class FindingDetectionResult(BaseModel):
    findings: List[AuditFinding] = Field(default_factory=list)
    critical_count: int = 0
    high_count: int = 0


class ComplianceEvaluationResult(BaseModel):
    statuses: List[ComplianceStatus] = Field(default_factory=list)
    overall_compliance: float = 100.0


class CoverageAnalysisResult(BaseModel):
    coverages: List[PolicyCoverage] = Field(default_factory=list)
    overall_coverage: float = 100.0


def analyze_governance_audit(
    audit_input: GovernanceAuditInput,
    per_category: bool = False
) -> GovernanceAuditOutput:
    """
    Run the full audit analysis over validated input.

    Args:
        audit_input: Validated GovernanceAuditInput
        per_category: If True, compliance rollups count only the trails
            tagged with each category. If False (default), every category
            is evaluated against the aggregate counts.

    Returns:
        GovernanceAuditOutput with findings, statuses, coverage, score
        and recommendations

    Example:
        >>> output = analyze_governance_audit(audit_input)
        >>> output.total_decisions_audited == len(audit_input.decision_trails)
        True
    """
    scope = audit_input.audit_scope

    # Step 1: Build analysis state from decision trails
    state = build_analysis_state(audit_input.decision_trails, scope.categories)

    # Step 2: Detect audit findings
    finding_result = detect_findings(audit_input, state)

    # Step 3: Evaluate compliance
    if scope.include_compliance:
        compliance_result = evaluate_compliance(scope.categories, state, per_category)
    else:
        compliance_result = ComplianceEvaluationResult()

    # Step 4: Analyze policy coverage
    if scope.include_policy_coverage:
        coverage_result = analyze_policy_coverage(audit_input)
    else:
        coverage_result = CoverageAnalysisResult()

    # Step 5: Calculate audit score
    audit_score = calculate_audit_score(finding_result, compliance_result, coverage_result)

    # Step 6: Generate recommendations
    recommendations = generate_recommendations(
        finding_result,
        compliance_result,
        coverage_result,
        audit_score
    )

    return GovernanceAuditOutput(
        audit_findings=finding_result.findings,
        compliance_status=compliance_result.statuses,
        policy_coverage=coverage_result.coverages,
        audit_score=audit_score,
        total_decisions_audited=state.total_decisions,
        total_policies_evaluated=len(audit_input.policy_snapshots),
        recommendations=recommendations,
    )


def build_analysis_state(
    trails: List[DecisionTrailRecord],
    categories: List[AuditCategory]
) -> AuditAnalysisState:
    """Count compliance and approval outcomes in one pass."""
    state = AuditAnalysisState(total_decisions=len(trails))

    for category in categories:
        state.category_counts[category] = CategoryCounts()

    for trail in trails:
        is_compliant = trail.compliance_status == DecisionComplianceStatus.COMPLIANT
        is_non_compliant = trail.compliance_status == DecisionComplianceStatus.NON_COMPLIANT

        if is_compliant:
            state.compliant_decisions += 1
        elif is_non_compliant:
            state.non_compliant_decisions += 1

        if trail.approval_status == ApprovalStatus.PENDING:
            state.pending_approvals += 1

        counts = state.category_counts.get(trail.category) if trail.category else None
        if counts is not None:
            counts.total += 1
            if is_compliant:
                counts.compliant += 1
            elif is_non_compliant:
                counts.non_compliant += 1

    return state


def detect_findings(
    audit_input: GovernanceAuditInput,
    state: AuditAnalysisState
) -> FindingDetectionResult:
    """
    Detect audit findings.

    Each check fires independently:
    - non-compliant decisions (severity by non-compliance ratio)
    - pending approvals (severity by count)
    - inactive policies (always low)
    """
    findings: List[AuditFinding] = []
    trails = audit_input.decision_trails

    if state.non_compliant_decisions > 0:
        ratio = state.non_compliant_decisions / max(state.total_decisions, 1)
        if ratio > 0.2:
            severity = FindingSeverity.HIGH
        elif ratio > 0.1:
            severity = FindingSeverity.MEDIUM
        else:
            severity = FindingSeverity.LOW

        affected = [
            t.decision_event_id for t in trails
            if t.compliance_status == DecisionComplianceStatus.NON_COMPLIANT
        ][:MAX_AFFECTED_DECISIONS]

        findings.append(AuditFinding(
            finding_id=str(uuid.uuid4()),
            category=AuditCategory.POLICY_COMPLIANCE,
            severity=severity,
            title="Non-compliant decisions detected",
            description=(
                f"{state.non_compliant_decisions} of {state.total_decisions} decisions "
                f"were non-compliant ({ratio * 100:.1f}%)"
            ),
            affected_entities=affected,
            evidence=[f"Non-compliance ratio: {ratio * 100:.1f}%"],
            remediation=[
                "Review non-compliant decisions for root cause",
                "Update policies to address recurring violations",
            ],
        ))

    if state.pending_approvals > 0:
        affected = [
            t.decision_event_id for t in trails
            if t.approval_status == ApprovalStatus.PENDING
        ][:MAX_AFFECTED_DECISIONS]

        findings.append(AuditFinding(
            finding_id=str(uuid.uuid4()),
            category=AuditCategory.APPROVAL_TRAILS,
            severity=FindingSeverity.HIGH if state.pending_approvals > 10 else FindingSeverity.MEDIUM,
            title="Pending approvals detected",
            description=f"{state.pending_approvals} decisions have pending approval status",
            affected_entities=affected,
            evidence=[f"Pending approvals: {state.pending_approvals}"],
            remediation=[
                "Review pending approvals for stale items",
                "Escalate overdue approvals",
            ],
        ))

    inactive_policies = [p for p in audit_input.policy_snapshots if not p.is_active]
    if inactive_policies:
        findings.append(AuditFinding(
            finding_id=str(uuid.uuid4()),
            category=AuditCategory.POLICY_COMPLIANCE,
            severity=FindingSeverity.LOW,
            title="Inactive policies found",
            description=f"{len(inactive_policies)} policies are currently inactive",
            affected_entities=[p.policy_id for p in inactive_policies],
            evidence=[f'Policy "{p.policy_name}" is inactive' for p in inactive_policies],
            remediation=[
                "Review inactive policies for relevance",
                "Archive or re-activate as appropriate",
            ],
        ))

    return FindingDetectionResult(
        findings=findings,
        critical_count=sum(1 for f in findings if f.severity == FindingSeverity.CRITICAL),
        high_count=sum(1 for f in findings if f.severity == FindingSeverity.HIGH),
    )


def evaluate_compliance(
    categories: List[AuditCategory],
    state: AuditAnalysisState,
    per_category: bool = False
) -> ComplianceEvaluationResult:
    """
    Roll up compliance per requested category.

    Status thresholds: >= 95% compliant, >= 70% partially compliant,
    otherwise non-compliant. A category with no decisions is 100%.
    """
    statuses: List[ComplianceStatus] = []

    for category in categories:
        if per_category:
            counts = state.category_counts.get(category, CategoryCounts())
            total = counts.total
            compliant = counts.compliant
            non_compliant = counts.non_compliant
        else:
            total = state.total_decisions
            compliant = state.compliant_decisions
            non_compliant = state.non_compliant_decisions

        percentage = (compliant / total) * 100 if total > 0 else 100.0

        if percentage >= COMPLIANT_THRESHOLD:
            status = ComplianceLevel.COMPLIANT
        elif percentage >= PARTIALLY_COMPLIANT_THRESHOLD:
            status = ComplianceLevel.PARTIALLY_COMPLIANT
        else:
            status = ComplianceLevel.NON_COMPLIANT

        statuses.append(ComplianceStatus(
            category=category,
            status=status,
            compliance_percentage=_round_one_decimal(percentage),
            total_evaluated=total,
            compliant_count=compliant,
            non_compliant_count=non_compliant,
        ))

    if statuses:
        overall = sum(s.compliance_percentage for s in statuses) / len(statuses)
    else:
        overall = 100.0

    return ComplianceEvaluationResult(statuses=statuses, overall_compliance=overall)


def analyze_policy_coverage(audit_input: GovernanceAuditInput) -> CoverageAnalysisResult:
    """
    Measure how well active policies cover each requested category.

    Levels: none (no covering policy), partial (one policy or fewer than
    3 rules), adequate (fewer than 10 rules), comprehensive otherwise.
    """
    coverages: List[PolicyCoverage] = []

    for category in audit_input.audit_scope.categories:
        covering = [
            p for p in audit_input.policy_snapshots
            if p.is_active and category in p.categories
        ]
        total_rules = sum(p.rule_count for p in covering)

        if not covering:
            level = CoverageLevel.NONE
        elif len(covering) == 1 or total_rules < 3:
            level = CoverageLevel.PARTIAL
        elif total_rules < 10:
            level = CoverageLevel.ADEQUATE
        else:
            level = CoverageLevel.COMPREHENSIVE

        gaps: List[str] = []
        if not covering:
            gaps.append(f"No active policies cover {category.value}")
        elif total_rules < 3:
            gaps.append(f"Only {total_rules} rules cover {category.value}")

        coverages.append(PolicyCoverage(
            category=category,
            policies_count=len(covering),
            rules_count=total_rules,
            coverage_level=level,
            gaps=gaps,
        ))

    if coverages:
        overall = sum(COVERAGE_LEVEL_SCORES[c.coverage_level] for c in coverages) / len(coverages)
    else:
        overall = 100.0

    return CoverageAnalysisResult(coverages=coverages, overall_coverage=overall)


def calculate_audit_score(
    findings: FindingDetectionResult,
    compliance: ComplianceEvaluationResult,
    coverage: CoverageAnalysisResult
) -> float:
    """
    Compute the 0-100 audit score.

    Finding deductions are blended 70/30 with overall compliance, then a
    flat 10 points come off when overall coverage is below 50.
    """
    other_count = len(findings.findings) - findings.critical_count - findings.high_count

    score = 100.0
    score -= findings.critical_count * 20
    score -= findings.high_count * 10
    score -= other_count * 3

    compliance_factor = compliance.overall_compliance / 100
    score = score * 0.7 + compliance_factor * 100 * 0.3

    if coverage.overall_coverage < 50:
        score -= 10

    return max(0.0, min(100.0, _round_one_decimal(score)))


def generate_recommendations(
    findings: FindingDetectionResult,
    compliance: ComplianceEvaluationResult,
    coverage: CoverageAnalysisResult,
    audit_score: float
) -> List[Recommendation]:
    """Generate recommendations in fixed priority order."""
    recommendations: List[Recommendation] = []

    if findings.critical_count > 0:
        recommendations.append(Recommendation(
            recommendation_id=str(uuid.uuid4()),
            priority=RecommendationPriority.CRITICAL,
            category=AuditCategory.POLICY_COMPLIANCE,
            description=(
                f"{findings.critical_count} critical audit finding(s) require immediate attention"
            ),
            action_items=[
                "Investigate critical findings immediately",
                "Implement corrective actions",
                "Schedule follow-up audit",
            ],
        ))

    if compliance.overall_compliance < 80:
        recommendations.append(Recommendation(
            recommendation_id=str(uuid.uuid4()),
            priority=RecommendationPriority.HIGH,
            category=AuditCategory.POLICY_COMPLIANCE,
            description=(
                f"Overall compliance at {compliance.overall_compliance:.1f}% "
                f"is below acceptable threshold"
            ),
            action_items=[
                "Review non-compliant categories for root causes",
                "Update governance policies to address gaps",
                "Implement monitoring for compliance metrics",
            ],
        ))

    uncovered = [c for c in coverage.coverages if c.coverage_level == CoverageLevel.NONE]
    if uncovered:
        recommendations.append(Recommendation(
            recommendation_id=str(uuid.uuid4()),
            priority=RecommendationPriority.MEDIUM,
            category=AuditCategory.POLICY_COMPLIANCE,
            description=f"{len(uncovered)} audit category(ies) have no policy coverage",
            action_items=[f"Create policies for {c.category.value}" for c in uncovered],
        ))

    if audit_score < 50:
        recommendations.append(Recommendation(
            recommendation_id=str(uuid.uuid4()),
            priority=RecommendationPriority.HIGH,
            category=AuditCategory.DATA_GOVERNANCE,
            description=(
                "Audit score is critically low; governance posture needs urgent improvement"
            ),
            action_items=[
                "Conduct comprehensive governance review",
                "Establish governance improvement plan",
                "Schedule weekly audit check-ins",
            ],
        ))

    return recommendations


def _round_one_decimal(value: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10
