"""
Governance Audit Agent.

Analyzes governance decision trails and policy state to produce audit
summaries and compliance visibility.

This agent MUST NOT:
- Enforce policies
- Modify configurations
- Approve or reject changes
- Connect to SQL directly
"""

import asyncio
import time
from typing import Any, Dict, Optional

from governance_audit.domain.audit_analysis import analyze_governance_audit
from governance_audit.logging import get_logger
from governance_audit.schemas.agent import AgentContext, AgentError, AgentResult
from governance_audit.schemas.decision_event import (
    Confidence,
    ConstraintsApplied,
    DecisionType,
    EventTelemetry,
    OrgBoundaries,
    TimeWindow,
)
from governance_audit.schemas.governance_audit import (
    GOVERNANCE_AUDIT_AGENT_METADATA,
    GovernanceAuditInput,
    GovernanceAuditOutput,
)
from governance_audit.services.decision_event_emitter import DecisionEventEmitter
from governance_audit.services.ruvector_client import RuvectorClient
from governance_audit.services.telemetry import TelemetryEmitter
from governance_audit.validation import (
    ContractValidationError,
    validate_governance_audit_input,
    validate_governance_audit_output,
)

logger = get_logger(__name__)

AGENT_ERROR_CODE = "AGENT_ERROR"


class GovernanceAuditAgent:
    """
    Governance audit agent.

    Wraps the pure audit analysis with the two schema checkpoints, the
    DecisionEvent envelope, persistence and telemetry. Exactly one
    DecisionEvent is emitted per invocation, including failed ones.
    """

    def __init__(
        self,
        ruvector_client: RuvectorClient,
        telemetry: Optional[TelemetryEmitter] = None,
        dry_run: bool = False,
        per_category_compliance: bool = False
    ):
        """
        Initialize agent.

        Args:
            ruvector_client: Client for the decision event store
            telemetry: Optional telemetry emitter
            dry_run: If True, decision events are not persisted
            per_category_compliance: If True, compliance is rolled up from
                the trails tagged with each category instead of aggregate counts
        """
        self.metadata = GOVERNANCE_AUDIT_AGENT_METADATA.model_copy(deep=True)
        self.telemetry = telemetry
        self.per_category_compliance = per_category_compliance
        self.decision_event_emitter = DecisionEventEmitter(
            ruvector_client=ruvector_client,
            agent_id=self.metadata.agent_id,
            agent_version=self.metadata.agent_version,
            dry_run=dry_run,
        )

    async def execute(self, raw_input: Any, context: AgentContext) -> AgentResult:
        """
        Execute a governance audit.

        Args:
            raw_input: Unvalidated request payload
            context: Execution context

        Returns:
            AgentResult; success=False with an error envelope if the input is
            invalid or analysis fails
        """
        start = time.monotonic()

        if self.telemetry:
            self.telemetry.emit_invocation_start(self.metadata, context)

        try:
            audit_input = validate_governance_audit_input(raw_input)

            logger.audit_started(
                execution_ref=context.execution_ref,
                organization_id=audit_input.organization_id,
                decision_count=len(audit_input.decision_trails),
                policy_count=len(audit_input.policy_snapshots)
            )

            output = analyze_governance_audit(
                audit_input,
                per_category=self.per_category_compliance
            )
            audit_output = validate_governance_audit_output(output)

            decision_event = await self.decision_event_emitter.emit(
                decision_type=DecisionType.AUDIT_SUMMARY,
                inputs=audit_input,
                outputs=audit_output.model_dump(mode="json"),
                confidence=self.calculate_confidence(audit_input, audit_output),
                constraints_applied=self._constraints_for(audit_input),
                execution_ref=context.execution_ref,
                telemetry=EventTelemetry(
                    latency_ms=self._elapsed_ms(start),
                    source_system=context.caller.service,
                ),
            )
        except Exception as e:
            return await self._fail(e, raw_input, context, start)

        duration_ms = self._elapsed_ms(start)
        if self.telemetry:
            self.telemetry.emit_invocation_success(
                self.metadata,
                context,
                duration_ms,
                {
                    "findings_count": len(audit_output.audit_findings),
                    "audit_score": audit_output.audit_score,
                },
            )

        logger.audit_completed(
            execution_ref=context.execution_ref,
            decision_event_id=str(decision_event.id),
            audit_score=audit_output.audit_score,
            findings_count=len(audit_output.audit_findings),
            duration_ms=duration_ms
        )

        return AgentResult(
            success=True,
            decision_event=decision_event,
            output=audit_output.model_dump(mode="json"),
        )

    def execute_sync(self, raw_input: Any, context: AgentContext) -> AgentResult:
        """Synchronous wrapper for execute()."""
        return asyncio.run(self.execute(raw_input, context))

    def health_check(self) -> Dict[str, Any]:
        """Report agent health."""
        if self.telemetry:
            self.telemetry.emit_health_check(self.metadata, True)
        return {
            "healthy": True,
            "details": {
                "agent_id": self.metadata.agent_id,
                "version": self.metadata.agent_version,
            },
        }

    def calculate_confidence(
        self,
        audit_input: GovernanceAuditInput,
        audit_output: GovernanceAuditOutput
    ) -> Confidence:
        """
        Derive the confidence block from input and output shape.

        Coverage reflects how much of the audit surface was analyzed;
        completeness reflects which output sections are populated.
        """
        coverage = 0.5
        if audit_input.audit_scope.include_compliance:
            coverage += 0.2
        if audit_input.audit_scope.include_policy_coverage:
            coverage += 0.2
        if len(audit_input.decision_trails) > 10:
            coverage += 0.1

        # The findings list is always present, even when empty
        completeness = 0.5 + 0.15
        if audit_output.compliance_status:
            completeness += 0.15
        if audit_output.policy_coverage:
            completeness += 0.1
        if audit_output.recommendations:
            completeness += 0.1

        coverage = min(coverage, 1.0)
        completeness = min(completeness, 1.0)

        return Confidence(
            coverage=coverage,
            completeness=completeness,
            overall=min(DecisionEventEmitter.calculate_overall_confidence(coverage, completeness), 1.0),
        )

    async def _fail(
        self,
        error: Exception,
        raw_input: Any,
        context: AgentContext,
        start: float
    ) -> AgentResult:
        """Report a failed invocation and emit the error envelope."""
        agent_error = self._agent_error(error)
        duration_ms = self._elapsed_ms(start)

        if self.telemetry:
            self.telemetry.emit_invocation_failure(
                self.metadata,
                context,
                duration_ms,
                agent_error.model_dump(),
            )

        logger.audit_failed(
            execution_ref=context.execution_ref,
            code=agent_error.code,
            error=agent_error.message
        )

        organization_id = "unknown"
        if isinstance(raw_input, dict) and isinstance(raw_input.get("organization_id"), str):
            organization_id = raw_input["organization_id"]

        error_event = await self.decision_event_emitter.emit(
            decision_type=DecisionType.AUDIT_SUMMARY,
            inputs=raw_input,
            outputs={"error": {"code": agent_error.code, "message": agent_error.message}},
            confidence=Confidence(coverage=0, completeness=0, overall=0),
            constraints_applied=ConstraintsApplied(
                policy_scope=[],
                org_boundaries=OrgBoundaries(organization_id=organization_id),
            ),
            execution_ref=context.execution_ref,
            telemetry=EventTelemetry(latency_ms=duration_ms),
        )

        return AgentResult(
            success=False,
            decision_event=error_event,
            output=None,
            error=agent_error,
        )

    @staticmethod
    def _agent_error(error: Exception) -> AgentError:
        if isinstance(error, ContractValidationError):
            return AgentError(code=error.code.value, message=error.message, details=error.details)
        return AgentError(
            code=getattr(error, "code", None) or AGENT_ERROR_CODE,
            message=str(error),
        )

    @staticmethod
    def _constraints_for(audit_input: GovernanceAuditInput) -> ConstraintsApplied:
        filters = audit_input.filters
        return ConstraintsApplied(
            policy_scope=[p.policy_id for p in audit_input.policy_snapshots],
            org_boundaries=OrgBoundaries(
                organization_id=audit_input.organization_id,
                team_ids=filters.team_ids if filters else None,
            ),
            time_window=TimeWindow(
                start=audit_input.time_range.start,
                end=audit_input.time_range.end,
            ),
            analysis_scope=audit_input.audit_scope.model_dump(mode="json"),
        )

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.monotonic() - start) * 1000
