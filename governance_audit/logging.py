"""
Structured Logging Module for the Governance Audit Agent.

Provides JSON-formatted structured logging for observability.
Key events: audit execution, decision event emission, persistence
failures, telemetry delivery.
"""

import logging
import json
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from governance_audit.config import settings


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    All logs are emitted as single-line JSON objects for easy parsing
    by log aggregation tools (Cloud Logging, Datadog, etc.).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """
    Structured logger wrapper with domain-specific methods.

    Provides type-safe logging for governance audit events.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        message: str,
        **kwargs: Any
    ) -> None:
        """Internal log method with extra fields."""
        extra = {"extra_fields": kwargs}
        self.logger.log(level, message, extra=extra)

    # ===== Audit Events =====

    def audit_started(
        self,
        execution_ref: str,
        organization_id: str,
        decision_count: int,
        policy_count: int
    ) -> None:
        """Log governance audit started."""
        self._log(
            logging.INFO,
            f"Audit started for organization {organization_id}",
            event="audit.started",
            execution_ref=execution_ref,
            organization_id=organization_id,
            decision_count=decision_count,
            policy_count=policy_count
        )

    def audit_completed(
        self,
        execution_ref: str,
        decision_event_id: str,
        audit_score: float,
        findings_count: int,
        duration_ms: Optional[float] = None
    ) -> None:
        """Log governance audit completed."""
        self._log(
            logging.INFO,
            f"Audit completed: score={audit_score}, {findings_count} findings",
            event="audit.completed",
            execution_ref=execution_ref,
            decision_event_id=decision_event_id,
            audit_score=audit_score,
            findings_count=findings_count,
            duration_ms=duration_ms
        )

    def audit_failed(
        self,
        execution_ref: str,
        code: str,
        error: str
    ) -> None:
        """Log governance audit failure."""
        self._log(
            logging.ERROR,
            f"Audit failed: {error}",
            event="audit.failed",
            execution_ref=execution_ref,
            code=code,
            error=error
        )

    # ===== Execution Span Events =====

    def execution_finished(
        self,
        execution_id: str,
        repo_span_id: str,
        agent_span_id: str,
        status: str,
        decision_event_id: Optional[str] = None
    ) -> None:
        """Log a finalized execution span tree."""
        self._log(
            logging.INFO if status == "COMPLETED" else logging.WARNING,
            f"Execution {execution_id} finished: {status}",
            event="execution.finished",
            execution_id=execution_id,
            repo_span_id=repo_span_id,
            agent_span_id=agent_span_id,
            status=status,
            decision_event_id=decision_event_id
        )

    def execution_unhandled_error(
        self,
        execution_id: str,
        repo_span_id: str,
        agent_span_id: str,
        error: str
    ) -> None:
        """Log an agent error that escaped execute()."""
        self._log(
            logging.ERROR,
            f"Execution {execution_id} unhandled agent error: {error}",
            event="execution.unhandled_error",
            execution_id=execution_id,
            repo_span_id=repo_span_id,
            agent_span_id=agent_span_id,
            error=error
        )

    # ===== Decision Event Events =====

    def decision_event_emitted(
        self,
        event_id: str,
        decision_type: str,
        inputs_hash: str,
        persisted: bool
    ) -> None:
        """Log decision event created (and persisted unless dry-run)."""
        self._log(
            logging.INFO,
            f"Decision event emitted: {decision_type}" +
            ("" if persisted else " [DRY RUN]"),
            event="decision_event.emitted",
            event_id=event_id,
            decision_type=decision_type,
            inputs_hash=inputs_hash,
            persisted=persisted
        )

    def decision_event_persist_failed(
        self,
        event_id: str,
        agent_id: str,
        decision_type: str,
        timestamp: str,
        error: str,
        status: Optional[int] = None
    ) -> None:
        """
        Log decision event persistence failure.

        Carries enough of the envelope to recover the event from logs.
        """
        self._log(
            logging.WARNING,
            f"Failed to persist decision event {event_id}: {error}",
            event="decision_event.persist_failed",
            event_id=event_id,
            agent_id=agent_id,
            decision_type=decision_type,
            timestamp=timestamp,
            error=error,
            status=status
        )

    # ===== Telemetry Events =====

    def telemetry_event(
        self,
        event_type: str,
        payload: Dict[str, Any]
    ) -> None:
        """Log a telemetry event locally."""
        level = logging.ERROR if "failure" in event_type else logging.INFO
        self._log(
            level,
            f"Telemetry: {event_type}",
            event="telemetry.emitted",
            telemetry=payload
        )

    def telemetry_events_dropped(self, event_count: int) -> None:
        """Log buffered telemetry events discarded on overflow."""
        self._log(
            logging.WARNING,
            f"Dropped {event_count} buffered telemetry events",
            event="telemetry.dropped",
            event_count=event_count
        )

    def telemetry_flush_failed(
        self,
        event_count: int,
        error: str,
        requeued: bool
    ) -> None:
        """Log telemetry batch delivery failure."""
        self._log(
            logging.ERROR,
            f"Failed to flush {event_count} telemetry events: {error}",
            event="telemetry.flush_failed",
            event_count=event_count,
            error=error,
            requeued=requeued
        )


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Should be called once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Remove existing handlers
    root_logger.handlers = []

    # Add JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # Set levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.audit_completed("exec-1", "evt-1", 84.0, 1)
    """
    return StructuredLogger(name)
