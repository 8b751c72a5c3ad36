"""
Pydantic schemas for execution spans.

Every agent execution over HTTP is wrapped in a repo-level span that
contains one agent-level span per executed agent. Artifacts (the
DecisionEvent) hang off agent spans only.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class SpanStatus(str, Enum):
    """Lifecycle status of a span."""
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SpanError(BaseModel):
    """Error details recorded on a failed span."""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class SpanArtifact(BaseModel):
    """Evidence attached to an agent span."""
    artifact_id: str
    artifact_type: str
    data: Dict[str, Any]


class ExecutionContext(BaseModel):
    """Caller-supplied execution identity taken from request headers."""
    execution_id: str
    parent_span_id: str


class AgentSpan(BaseModel):
    """One agent execution within a repo span."""
    type: Literal["agent"] = "agent"
    span_id: str
    parent_span_id: str
    agent_name: str
    repo_name: str
    status: SpanStatus = SpanStatus.RUNNING
    start_time: datetime
    end_time: Optional[datetime] = None
    error: Optional[SpanError] = None
    artifacts: List[SpanArtifact] = Field(default_factory=list)


class RepoSpan(BaseModel):
    """One handler invocation; parent of its agent spans."""
    type: Literal["repo"] = "repo"
    span_id: str
    parent_span_id: str
    execution_id: str
    repo_name: str
    status: SpanStatus = SpanStatus.RUNNING
    start_time: datetime
    end_time: Optional[datetime] = None
    error: Optional[SpanError] = None
    agent_spans: List[AgentSpan] = Field(default_factory=list)


class ExecutionResponse(BaseModel):
    """Response body for agent execution routes."""
    execution_id: str
    repo_span: RepoSpan
    result: Optional[Dict[str, Any]] = None
