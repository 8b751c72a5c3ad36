"""
Execution span management.

Stateless helpers that build the span tree for one HTTP invocation:
a repo span from the caller's execution context, an agent span per
executed agent, and the DecisionEvent attached as an agent artifact.

An execution that finishes without any agent span is invalid and its
repo span is marked FAILED.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from governance_audit.schemas.execution_span import (
    AgentSpan,
    ExecutionContext,
    ExecutionResponse,
    RepoSpan,
    SpanArtifact,
    SpanError,
    SpanStatus,
)

REPO_NAME = "governance-audit-agent"

MISSING_EXECUTION_CONTEXT = "MISSING_EXECUTION_CONTEXT"
REQUIRED_HEADERS = ["x-execution-id", "x-parent-span-id"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def extract_execution_context(headers: Mapping[str, str]) -> Optional[ExecutionContext]:
    """
    Read the execution context from request headers.

    Requires x-parent-span-id; the execution id comes from x-execution-id,
    falling back to x-request-id.

    Returns:
        ExecutionContext, or None if either value is missing
    """
    parent_span_id = headers.get("x-parent-span-id")
    execution_id = headers.get("x-execution-id") or headers.get("x-request-id")
    if not parent_span_id or not execution_id:
        return None
    return ExecutionContext(execution_id=execution_id, parent_span_id=parent_span_id)


def create_repo_span(context: ExecutionContext) -> RepoSpan:
    """Open the repo span for one invocation."""
    return RepoSpan(
        span_id=str(uuid.uuid4()),
        parent_span_id=context.parent_span_id,
        execution_id=context.execution_id,
        repo_name=REPO_NAME,
        start_time=_now(),
    )


def create_agent_span(repo_span: RepoSpan, agent_name: str) -> AgentSpan:
    """Open an agent span parented on the repo span."""
    return AgentSpan(
        span_id=str(uuid.uuid4()),
        parent_span_id=repo_span.span_id,
        agent_name=agent_name,
        repo_name=REPO_NAME,
        start_time=_now(),
    )


def attach_artifact(agent_span: AgentSpan, artifact_type: str, data: Dict[str, Any]) -> None:
    """Attach evidence to an agent span."""
    agent_span.artifacts.append(SpanArtifact(
        artifact_id=str(uuid.uuid4()),
        artifact_type=artifact_type,
        data=data,
    ))


def complete_agent_span(agent_span: AgentSpan) -> None:
    agent_span.status = SpanStatus.COMPLETED
    agent_span.end_time = _now()


def fail_agent_span(agent_span: AgentSpan, error: SpanError) -> None:
    agent_span.status = SpanStatus.FAILED
    agent_span.end_time = _now()
    agent_span.error = error


def finalize_repo_span(repo_span: RepoSpan) -> None:
    """
    Close the repo span.

    FAILED if there are no agent spans or any agent span failed,
    COMPLETED otherwise.
    """
    repo_span.end_time = _now()

    if not repo_span.agent_spans:
        repo_span.status = SpanStatus.FAILED
        repo_span.error = SpanError(
            code="NO_AGENT_SPANS",
            message="Execution completed without any agent spans",
        )
        return

    failed = [s.agent_name for s in repo_span.agent_spans if s.status == SpanStatus.FAILED]
    if failed:
        repo_span.status = SpanStatus.FAILED
        repo_span.error = SpanError(
            code="AGENT_EXECUTION_FAILED",
            message=f"Agent(s) failed: {', '.join(failed)}",
        )
    else:
        repo_span.status = SpanStatus.COMPLETED


def build_execution_response(
    repo_span: RepoSpan,
    result: Optional[Dict[str, Any]] = None
) -> ExecutionResponse:
    return ExecutionResponse(
        execution_id=repo_span.execution_id,
        repo_span=repo_span,
        result=result,
    )


def context_rejection_response() -> Dict[str, Any]:
    """Error body for requests without execution context."""
    return {
        "error": {
            "code": MISSING_EXECUTION_CONTEXT,
            "message": "Execution rejected: x-parent-span-id and an execution id are required",
            "required_headers": REQUIRED_HEADERS,
        }
    }
