"""
DecisionEvent Emitter Service.

Creates and emits DecisionEvents to ruvector-service.
Every agent invocation MUST emit exactly ONE DecisionEvent.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from governance_audit.domain.fingerprinting import compute_inputs_hash
from governance_audit.logging import get_logger
from governance_audit.schemas.decision_event import (
    Confidence,
    ConfidenceBand,
    ConstraintsApplied,
    DecisionEvent,
    DecisionType,
    EventTelemetry,
)
from governance_audit.services.ruvector_client import RuvectorClient
from governance_audit.validation import validate_decision_event

logger = get_logger(__name__)


class DecisionEventEmitter:
    """
    DecisionEvent emission service.

    Wraps agent outputs in the standard envelope (input hash, confidence,
    constraints, execution reference, timestamp) and persists it unless
    running in dry-run mode.
    """

    def __init__(
        self,
        ruvector_client: RuvectorClient,
        agent_id: str,
        agent_version: str,
        dry_run: bool = False
    ):
        """
        Initialize emitter.

        Args:
            ruvector_client: Client for the decision event store
            agent_id: Identifier of the emitting agent
            agent_version: Semantic version of the emitting agent
            dry_run: If True, events are built and validated but not persisted
        """
        self.ruvector_client = ruvector_client
        self.agent_id = agent_id
        self.agent_version = agent_version
        self.dry_run = dry_run

    async def emit(
        self,
        decision_type: DecisionType,
        inputs: Any,
        outputs: Dict[str, Any],
        confidence: Confidence,
        constraints_applied: ConstraintsApplied,
        execution_ref: str,
        telemetry: Optional[EventTelemetry] = None
    ) -> DecisionEvent:
        """
        Create, validate and persist a DecisionEvent.

        Returns:
            The validated DecisionEvent

        Raises:
            InvalidOutputError: If the envelope fails validation
            RuvectorError: If persistence fails with an auth error
        """
        event = self.create_event(
            decision_type=decision_type,
            inputs=inputs,
            outputs=outputs,
            confidence=confidence,
            constraints_applied=constraints_applied,
            execution_ref=execution_ref,
            telemetry=telemetry,
        )

        validated = validate_decision_event(event.model_dump())

        if not self.dry_run:
            await self.ruvector_client.persist_decision_event(validated)

        logger.decision_event_emitted(
            event_id=str(validated.id),
            decision_type=validated.decision_type.value,
            inputs_hash=validated.inputs_hash,
            persisted=not self.dry_run
        )

        return validated

    def create_event(
        self,
        decision_type: DecisionType,
        inputs: Any,
        outputs: Dict[str, Any],
        confidence: Confidence,
        constraints_applied: ConstraintsApplied,
        execution_ref: str,
        telemetry: Optional[EventTelemetry] = None
    ) -> DecisionEvent:
        """Build a DecisionEvent without emitting it."""
        return DecisionEvent.model_construct(
            id=uuid.uuid4(),
            agent_id=self.agent_id,
            agent_version=self.agent_version,
            decision_type=decision_type,
            inputs_hash=compute_inputs_hash(inputs),
            outputs=outputs,
            confidence=confidence,
            constraints_applied=constraints_applied,
            execution_ref=execution_ref,
            timestamp=datetime.now(timezone.utc),
            telemetry=telemetry,
        )

    @staticmethod
    def calculate_overall_confidence(coverage: float, completeness: float) -> float:
        """Weighted average; coverage counts slightly more than completeness."""
        return coverage * 0.6 + completeness * 0.4

    @staticmethod
    def create_confidence(
        coverage: float,
        completeness: float,
        confidence_band: Optional[ConfidenceBand] = None
    ) -> Confidence:
        """Create a confidence block from component metrics."""
        return Confidence(
            coverage=coverage,
            completeness=completeness,
            confidence_band=confidence_band,
            overall=DecisionEventEmitter.calculate_overall_confidence(coverage, completeness),
        )
