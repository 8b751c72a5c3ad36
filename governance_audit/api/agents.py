"""
Agents API Router.

Exposes the governance audit agent over HTTP. The agent validates its own
input, so the request body is passed through unparsed and failures still
return the error DecisionEvent. Every execution is wrapped in a repo span
with one agent span carrying the DecisionEvent.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from governance_audit.api.dependencies import build_agent_context, get_governance_audit_agent
from governance_audit.logging import get_logger
from governance_audit.schemas.execution_span import SpanError
from governance_audit.schemas.governance_audit import GOVERNANCE_AUDIT_AGENT_METADATA
from governance_audit.services.execution_spans import (
    attach_artifact,
    build_execution_response,
    complete_agent_span,
    context_rejection_response,
    create_agent_span,
    create_repo_span,
    extract_execution_context,
    fail_agent_span,
    finalize_repo_span,
)
from governance_audit.services.governance_audit_agent import GovernanceAuditAgent
from governance_audit.validation import ValidationErrorCode

logger = get_logger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])

GOVERNANCE_AUDIT_ROUTE = "governance-audit"


@router.get("")
def list_agents() -> Dict[str, Any]:
    """List available agents."""
    metadata = GOVERNANCE_AUDIT_AGENT_METADATA
    return {
        "agents": [
            {
                "agent_id": metadata.agent_id,
                "version": metadata.agent_version,
                "classification": metadata.classification.value,
                "decision_type": metadata.decision_type,
                "description": metadata.description,
                "endpoints": {
                    "execute": f"POST /agents/{GOVERNANCE_AUDIT_ROUTE}",
                    "health": f"GET /agents/{GOVERNANCE_AUDIT_ROUTE}/health",
                },
            }
        ]
    }


@router.post(f"/{GOVERNANCE_AUDIT_ROUTE}")
async def execute_governance_audit(
    request: Request,
    agent: GovernanceAuditAgent = Depends(get_governance_audit_agent)
):
    """
    Run a governance audit.

    Requires x-parent-span-id and x-execution-id (or x-request-id) headers.
    Returns the span tree with the AgentResult: 200 on success, 400 if the
    input fails validation and 500 for any other failure.
    """
    execution_context = extract_execution_context(request.headers)
    if execution_context is None:
        return JSONResponse(status_code=400, content=context_rejection_response())

    try:
        body = await request.json()
    except ValueError:
        body = None

    context = build_agent_context(request.headers, body)
    repo_span = create_repo_span(execution_context)
    agent_span = create_agent_span(repo_span, GOVERNANCE_AUDIT_ROUTE)

    try:
        result = await agent.execute(body, context)
    except Exception as e:
        fail_agent_span(agent_span, SpanError(
            code=getattr(e, "code", None) or "AGENT_UNHANDLED_ERROR",
            message=str(e) or "Unhandled agent error",
        ))
        repo_span.agent_spans.append(agent_span)
        finalize_repo_span(repo_span)
        logger.execution_unhandled_error(
            execution_id=repo_span.execution_id,
            repo_span_id=repo_span.span_id,
            agent_span_id=agent_span.span_id,
            error=str(e)
        )
        return JSONResponse(
            status_code=500,
            content=build_execution_response(repo_span).model_dump(mode="json"),
        )

    attach_artifact(agent_span, "decision_event", result.decision_event.model_dump(mode="json"))

    if result.success:
        complete_agent_span(agent_span)
        status_code = 200
    else:
        fail_agent_span(agent_span, SpanError(
            code=result.error.code,
            message=result.error.message,
            details=result.error.details,
        ))
        if result.error.code == ValidationErrorCode.INVALID_INPUT.value:
            status_code = 400
        else:
            status_code = 500

    repo_span.agent_spans.append(agent_span)
    finalize_repo_span(repo_span)

    logger.execution_finished(
        execution_id=repo_span.execution_id,
        repo_span_id=repo_span.span_id,
        agent_span_id=agent_span.span_id,
        status=repo_span.status.value,
        decision_event_id=str(result.decision_event.id)
    )

    response = build_execution_response(repo_span, result.model_dump(mode="json"))
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@router.get(f"/{GOVERNANCE_AUDIT_ROUTE}/health")
def governance_audit_health(
    agent: GovernanceAuditAgent = Depends(get_governance_audit_agent)
) -> Dict[str, Any]:
    """Agent health check."""
    return agent.health_check()
