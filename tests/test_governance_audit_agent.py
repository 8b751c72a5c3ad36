"""
Governance Audit Agent tests.

Every invocation returns an AgentResult carrying exactly one
DecisionEvent, whether the audit succeeded or not.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from governance_audit.domain.fingerprinting import compute_inputs_hash
from governance_audit.schemas.decision_event import DecisionType
from governance_audit.schemas.governance_audit import GovernanceAuditInput
from governance_audit.services.factory import (
    create_governance_audit_agent,
    create_governance_audit_agent_for_testing,
)
from governance_audit.services.governance_audit_agent import GovernanceAuditAgent
from governance_audit.services.ruvector_client import RetryPolicy, RuvectorClient, RuvectorError
from governance_audit.services.telemetry import TelemetryEmitter, TelemetryEventType


@pytest.fixture
def mock_client():
    client = Mock()
    client.persist_decision_event = AsyncMock(return_value=None)
    return client


@pytest.fixture
def telemetry():
    return TelemetryEmitter(
        observatory_url="http://observatory.test",
        enable_logging=False,
    )


@pytest.fixture
def agent(mock_client, telemetry):
    return GovernanceAuditAgent(ruvector_client=mock_client, telemetry=telemetry)


class TestSuccessfulAudit:
    """Valid input produces an audit_summary envelope."""

    @pytest.mark.asyncio
    async def test_execute(self, agent, mock_client, agent_context, make_audit_input, make_trails,
                           comprehensive_policies):
        payload = make_audit_input(
            decision_trails=make_trails(10, non_compliant=3),
            policy_snapshots=comprehensive_policies,
            filters={"team_ids": ["team-a", "team-b"]},
        )

        result = await agent.execute(payload, agent_context)

        assert result.success is True
        assert result.error is None
        assert result.output["audit_score"] == pytest.approx(84.0)

        event = result.decision_event
        assert event.decision_type == DecisionType.AUDIT_SUMMARY
        assert event.agent_id == "governance-audit-agent"
        assert event.execution_ref == "exec-001"
        assert event.outputs == result.output
        assert event.inputs_hash == compute_inputs_hash(GovernanceAuditInput.model_validate(payload))
        assert event.telemetry.source_system == "governance-dashboard"

        constraints = event.constraints_applied
        assert constraints.policy_scope == ["pol-001", "pol-002"]
        assert constraints.org_boundaries.organization_id == "org-acme"
        assert constraints.org_boundaries.team_ids == ["team-a", "team-b"]
        assert constraints.analysis_scope == {
            "categories": ["policy_compliance"],
            "include_compliance": True,
            "include_policy_coverage": True,
        }
        assert constraints.time_window is not None

        mock_client.persist_decision_event.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_telemetry_sequence(self, agent, telemetry, agent_context, make_audit_input):
        await agent.execute(make_audit_input(), agent_context)

        assert [e.event_type for e in telemetry.buffer] == [
            TelemetryEventType.INVOCATION_START,
            TelemetryEventType.INVOCATION_SUCCESS,
        ]
        assert telemetry.buffer[1].data == {"findings_count": 0, "audit_score": 90.0}

    @pytest.mark.asyncio
    async def test_confidence(self, agent, agent_context, make_audit_input, make_trails):
        result = await agent.execute(make_audit_input(decision_trails=make_trails(11)), agent_context)

        confidence = result.decision_event.confidence
        # Full scope over more than 10 trails, every output section populated
        assert confidence.coverage == pytest.approx(1.0)
        assert confidence.completeness == pytest.approx(1.0)
        assert confidence.overall == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_per_category_mode(self, mock_client, agent_context, make_audit_input, make_trail):
        agent = GovernanceAuditAgent(ruvector_client=mock_client, per_category_compliance=True)
        payload = make_audit_input(
            decision_trails=[make_trail(0, compliance_status="non_compliant", category="access_control")],
            categories=["policy_compliance"],
        )

        result = await agent.execute(payload, agent_context)

        assert result.output["compliance_status"][0]["total_evaluated"] == 0

    def test_execute_sync(self, mock_client, agent_context, make_audit_input):
        agent = create_governance_audit_agent_for_testing(ruvector_client=mock_client)

        result = agent.execute_sync(make_audit_input(), agent_context)

        assert result.success is True
        mock_client.persist_decision_event.assert_not_called()


class TestFailedAudit:
    """Failures still emit one error envelope."""

    @pytest.mark.asyncio
    async def test_invalid_input(self, agent, mock_client, telemetry, agent_context, make_audit_input):
        payload = make_audit_input()
        payload["audit_scope"]["categories"] = ["bogus"]

        result = await agent.execute(payload, agent_context)

        assert result.success is False
        assert result.output is None
        assert result.error.code == "VALIDATION_INVALID_INPUT"
        assert result.error.details["issues"][0]["field"] == "audit_scope.categories.0"

        event = result.decision_event
        assert event.decision_type == DecisionType.AUDIT_SUMMARY
        assert event.outputs["error"]["code"] == "VALIDATION_INVALID_INPUT"
        assert event.confidence.overall == 0
        assert event.constraints_applied.org_boundaries.organization_id == "org-acme"
        assert event.constraints_applied.policy_scope == []
        assert event.inputs_hash == compute_inputs_hash(payload)

        mock_client.persist_decision_event.assert_awaited_once_with(event)
        assert [e.event_type for e in telemetry.buffer] == [
            TelemetryEventType.INVOCATION_START,
            TelemetryEventType.INVOCATION_FAILURE,
        ]

    @pytest.mark.asyncio
    async def test_non_object_input(self, agent, agent_context):
        result = await agent.execute(None, agent_context)

        assert result.success is False
        assert result.decision_event.constraints_applied.org_boundaries.organization_id == "unknown"

    @pytest.mark.asyncio
    async def test_unexpected_error(self, agent, agent_context, make_audit_input, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("analysis exploded")

        monkeypatch.setattr(
            "governance_audit.services.governance_audit_agent.analyze_governance_audit",
            explode,
        )

        result = await agent.execute(make_audit_input(), agent_context)

        assert result.success is False
        assert result.error.code == "AGENT_ERROR"
        assert result.error.message == "analysis exploded"

    @pytest.mark.asyncio
    async def test_store_non_json_body_does_not_fail_audit(self, agent_context, make_audit_input):
        store = RuvectorClient(
            base_url="http://ruvector.test",
            api_key="secret",
            retry=RetryPolicy(max_retries=0, initial_delay_ms=0),
            transport=httpx.MockTransport(lambda request: httpx.Response(201, text="Created")),
        )
        agent = GovernanceAuditAgent(ruvector_client=store)

        result = await agent.execute(make_audit_input(), agent_context)

        assert result.success is True
        assert result.decision_event.decision_type == DecisionType.AUDIT_SUMMARY

    @pytest.mark.asyncio
    async def test_auth_failure_propagates(self, agent, mock_client, agent_context, make_audit_input):
        mock_client.persist_decision_event.side_effect = RuvectorError("unauthorized", status=401)

        with pytest.raises(RuvectorError):
            await agent.execute(make_audit_input(), agent_context)


class TestAgentSurface:
    """Metadata, health and construction."""

    def test_health_check(self, agent, telemetry):
        health = agent.health_check()

        assert health == {
            "healthy": True,
            "details": {"agent_id": "governance-audit-agent", "version": "1.0.0"},
        }
        assert telemetry.buffer[0].event_type == TelemetryEventType.HEALTH_CHECK

    def test_metadata(self, agent):
        assert agent.metadata.decision_type == "audit_summary"
        assert "does_not_connect_to_sql" in agent.metadata.restrictions

    def test_factory(self):
        agent = create_governance_audit_agent(
            ruvector_base_url="http://ruvector.internal",
            ruvector_api_key="key",
            dry_run=True,
        )

        assert agent.decision_event_emitter.dry_run is True
        assert agent.decision_event_emitter.ruvector_client.base_url == "http://ruvector.internal"
        assert agent.telemetry is not None
