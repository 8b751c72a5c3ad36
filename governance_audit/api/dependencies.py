"""
API Dependencies - agent injection and execution context.
"""

import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Mapping

from governance_audit.schemas.agent import AgentContext, CallerInfo, TelemetryContext
from governance_audit.services.factory import create_governance_audit_agent_from_settings
from governance_audit.services.governance_audit_agent import GovernanceAuditAgent

UNKNOWN_CALLER = "unknown"


@lru_cache()
def get_governance_audit_agent() -> GovernanceAuditAgent:
    """
    FastAPI dependency returning the process-wide agent.

    Usage:
        @router.post("/agents/governance-audit")
        async def run(agent: GovernanceAuditAgent = Depends(get_governance_audit_agent)):
            ...
    """
    return create_governance_audit_agent_from_settings()


def build_agent_context(headers: Mapping[str, str], body: Any) -> AgentContext:
    """
    Build the execution context from request headers.

    The organization comes from the request body when present, so that
    contexts for invalid input still carry something useful.
    """
    organization_id = UNKNOWN_CALLER
    if isinstance(body, dict) and isinstance(body.get("organization_id"), str):
        organization_id = body["organization_id"]

    trace_id = headers.get("x-trace-id")
    telemetry_context = None
    if trace_id:
        telemetry_context = TelemetryContext(
            trace_id=trace_id,
            span_id=str(uuid.uuid4()),
            parent_span_id=headers.get("x-parent-span-id"),
        )

    return AgentContext(
        execution_ref=headers.get("x-request-id") or str(uuid.uuid4()),
        request_timestamp=datetime.now(timezone.utc),
        caller=CallerInfo(
            service=headers.get("x-caller-service") or UNKNOWN_CALLER,
            version=headers.get("x-caller-version"),
            trace_id=trace_id,
        ),
        organization_id=organization_id,
        telemetry_context=telemetry_context,
    )
