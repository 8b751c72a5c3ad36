"""
Execution span tests.
"""

from governance_audit.schemas.execution_span import ExecutionContext, SpanError, SpanStatus
from governance_audit.services.execution_spans import (
    REPO_NAME,
    attach_artifact,
    build_execution_response,
    complete_agent_span,
    create_agent_span,
    create_repo_span,
    extract_execution_context,
    fail_agent_span,
    finalize_repo_span,
)


def _repo_span():
    return create_repo_span(ExecutionContext(execution_id="exec-1", parent_span_id="core-1"))


class TestExecutionContext:

    def test_execution_id_preferred_over_request_id(self):
        context = extract_execution_context({
            "x-execution-id": "exec-1",
            "x-request-id": "req-1",
            "x-parent-span-id": "core-1",
        })

        assert context == ExecutionContext(execution_id="exec-1", parent_span_id="core-1")

    def test_missing_parent_span(self):
        assert extract_execution_context({"x-execution-id": "exec-1"}) is None

    def test_missing_execution_id(self):
        assert extract_execution_context({"x-parent-span-id": "core-1"}) is None


class TestSpanTree:

    def test_agent_span_parented_on_repo_span(self):
        repo_span = _repo_span()
        agent_span = create_agent_span(repo_span, "governance-audit")

        assert repo_span.status == SpanStatus.RUNNING
        assert repo_span.repo_name == REPO_NAME
        assert agent_span.parent_span_id == repo_span.span_id
        assert agent_span.span_id != repo_span.span_id

    def test_completed_tree(self):
        repo_span = _repo_span()
        agent_span = create_agent_span(repo_span, "governance-audit")
        attach_artifact(agent_span, "decision_event", {"id": "evt-1"})
        complete_agent_span(agent_span)
        repo_span.agent_spans.append(agent_span)

        finalize_repo_span(repo_span)

        assert repo_span.status == SpanStatus.COMPLETED
        assert repo_span.error is None
        assert agent_span.end_time is not None
        assert agent_span.artifacts[0].data == {"id": "evt-1"}

    def test_no_agent_spans_is_failed(self):
        repo_span = _repo_span()

        finalize_repo_span(repo_span)

        assert repo_span.status == SpanStatus.FAILED
        assert repo_span.error.code == "NO_AGENT_SPANS"
        assert repo_span.end_time is not None

    def test_failed_agent_fails_repo(self):
        repo_span = _repo_span()
        agent_span = create_agent_span(repo_span, "governance-audit")
        fail_agent_span(agent_span, SpanError(code="AGENT_ERROR", message="boom"))
        repo_span.agent_spans.append(agent_span)

        finalize_repo_span(repo_span)

        assert repo_span.status == SpanStatus.FAILED
        assert repo_span.error.message == "Agent(s) failed: governance-audit"

    def test_execution_response(self):
        repo_span = _repo_span()

        response = build_execution_response(repo_span, {"success": True})

        assert response.execution_id == "exec-1"
        assert response.repo_span.span_id == repo_span.span_id
        assert response.result == {"success": True}
