"""
Agent construction helpers.

Builds a GovernanceAuditAgent with its ruvector client and telemetry
emitter, either from explicit configuration or from application settings.
"""

from typing import Any, Optional

from governance_audit.config import Settings, settings as default_settings
from governance_audit.services.governance_audit_agent import GovernanceAuditAgent
from governance_audit.services.ruvector_client import RetryPolicy, RuvectorClient
from governance_audit.services.telemetry import TelemetryEmitter

# Placeholder store used by dry-run test agents; never contacted
TEST_RUVECTOR_URL = "http://localhost:0"
TEST_RUVECTOR_API_KEY = "test-api-key"


def create_governance_audit_agent(
    ruvector_base_url: str,
    ruvector_api_key: str,
    timeout_seconds: float = 30.0,
    max_retries: int = 3,
    observatory_url: Optional[str] = None,
    observatory_api_key: Optional[str] = None,
    enable_telemetry_logging: bool = True,
    dry_run: bool = False,
    per_category_compliance: bool = False
) -> GovernanceAuditAgent:
    """Create an agent from explicit configuration."""
    client = RuvectorClient(
        base_url=ruvector_base_url,
        api_key=ruvector_api_key,
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(max_retries=max_retries),
    )
    telemetry = TelemetryEmitter(
        observatory_url=observatory_url,
        observatory_api_key=observatory_api_key,
        enable_logging=enable_telemetry_logging,
    )
    return GovernanceAuditAgent(
        ruvector_client=client,
        telemetry=telemetry,
        dry_run=dry_run,
        per_category_compliance=per_category_compliance,
    )


def create_governance_audit_agent_from_settings(
    settings: Optional[Settings] = None
) -> GovernanceAuditAgent:
    """
    Create an agent from application settings.

    Raises:
        ConfigurationError: If the ruvector-service URL or API key is missing
    """
    settings = settings or default_settings
    return GovernanceAuditAgent(
        ruvector_client=RuvectorClient.from_settings(settings),
        telemetry=TelemetryEmitter.from_settings(settings),
        dry_run=settings.agent_dry_run,
        per_category_compliance=settings.per_category_compliance,
    )


def create_governance_audit_agent_for_testing(**overrides: Any) -> GovernanceAuditAgent:
    """
    Create a dry-run agent that never persists.

    Keyword overrides are passed to GovernanceAuditAgent, e.g. a mock
    ruvector_client or a telemetry emitter.
    """
    options = {
        "ruvector_client": RuvectorClient(
            base_url=TEST_RUVECTOR_URL,
            api_key=TEST_RUVECTOR_API_KEY,
        ),
        "telemetry": TelemetryEmitter(enable_logging=False),
        "dry_run": True,
    }
    options.update(overrides)
    return GovernanceAuditAgent(**options)
