"""
Telemetry Emitter.

Emits invocation telemetry compatible with LLM-Observatory. Telemetry is
fire-and-forget: nothing here may fail or block an agent invocation.
"""

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import httpx
from pydantic import BaseModel, Field

from governance_audit.config import Settings
from governance_audit.logging import get_logger
from governance_audit.schemas.agent import AgentContext, AgentMetadata

logger = get_logger(__name__)


class TelemetryEventType(str, Enum):
    """Telemetry event types."""
    INVOCATION_START = "agent.invocation.start"
    INVOCATION_SUCCESS = "agent.invocation.success"
    INVOCATION_FAILURE = "agent.invocation.failure"
    HEALTH_CHECK = "agent.health.check"


class TelemetryAgent(BaseModel):
    id: str
    version: str
    classification: str


class TelemetryEventContext(BaseModel):
    execution_ref: str
    organization_id: str
    trace_id: Optional[str] = None
    span_id: Optional[str] = None


class TelemetryEvent(BaseModel):
    """Telemetry event payload."""
    event_type: TelemetryEventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    agent: TelemetryAgent
    context: TelemetryEventContext
    data: Dict[str, Any] = Field(default_factory=dict)
    duration_ms: Optional[float] = None


class TelemetryEmitter:
    """
    Sends telemetry events to LLM-Observatory.

    Events are logged locally when logging is enabled and buffered when an
    observatory URL is configured. A full buffer is flushed in the
    background if an event loop is running; otherwise events wait for an
    explicit flush() or shutdown(). The buffer never holds more than twice
    the batch size.
    """

    def __init__(
        self,
        observatory_url: Optional[str] = None,
        observatory_api_key: Optional[str] = None,
        enable_logging: bool = True,
        batch_size: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.observatory_url = observatory_url.rstrip("/") if observatory_url else None
        self.observatory_api_key = observatory_api_key
        self.enable_logging = enable_logging
        self.batch_size = batch_size
        self.buffer: List[TelemetryEvent] = []
        self._transport = transport
        self._pending_flushes: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryEmitter":
        """Create a telemetry emitter from application settings."""
        return cls(
            observatory_url=settings.llm_observatory_url,
            observatory_api_key=settings.llm_observatory_api_key,
            enable_logging=settings.telemetry_enable_logging,
            batch_size=settings.telemetry_batch_size,
        )

    # ===== Invocation Events =====

    def emit_invocation_start(self, metadata: AgentMetadata, context: AgentContext) -> None:
        """Emit an agent invocation start event."""
        self._emit(TelemetryEvent(
            event_type=TelemetryEventType.INVOCATION_START,
            agent=self._agent(metadata),
            context=self._context(context),
            data={"caller": context.caller.model_dump()},
        ))

    def emit_invocation_success(
        self,
        metadata: AgentMetadata,
        context: AgentContext,
        duration_ms: float,
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Emit an agent invocation success event."""
        self._emit(TelemetryEvent(
            event_type=TelemetryEventType.INVOCATION_SUCCESS,
            agent=self._agent(metadata),
            context=self._context(context),
            data=data or {},
            duration_ms=duration_ms,
        ))

    def emit_invocation_failure(
        self,
        metadata: AgentMetadata,
        context: AgentContext,
        duration_ms: float,
        error: Dict[str, Any]
    ) -> None:
        """Emit an agent invocation failure event."""
        self._emit(TelemetryEvent(
            event_type=TelemetryEventType.INVOCATION_FAILURE,
            agent=self._agent(metadata),
            context=self._context(context),
            data={"error": error},
            duration_ms=duration_ms,
        ))

    def emit_health_check(
        self,
        metadata: AgentMetadata,
        healthy: bool,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Emit a health check event."""
        self._emit(TelemetryEvent(
            event_type=TelemetryEventType.HEALTH_CHECK,
            agent=self._agent(metadata),
            context=TelemetryEventContext(
                execution_ref=f"health-{int(time.time() * 1000)}",
                organization_id="system",
            ),
            data={"healthy": healthy, "details": details},
        ))

    # ===== Delivery =====

    async def flush(self) -> None:
        """Flush buffered events to the observatory."""
        if not self.buffer or not self.observatory_url:
            return

        events = self.buffer[:]
        self.buffer.clear()

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                response = await client.post(
                    f"{self.observatory_url}/api/v1/telemetry/batch",
                    json={"events": [e.model_dump(mode="json") for e in events]},
                    headers={
                        "Authorization": f"Bearer {self.observatory_api_key}",
                        "X-Client": "governance-audit-agent",
                    },
                )
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # Put events back for retry while the buffer stays bounded
            requeue = len(self.buffer) + len(events) <= self.max_buffered
            if requeue:
                self.buffer[:0] = events
            logger.telemetry_flush_failed(len(events), str(e), requeued=requeue)

    @property
    def max_buffered(self) -> int:
        """Upper bound on buffered events; the oldest are dropped beyond it."""
        return self.batch_size * 2

    async def shutdown(self) -> None:
        """Wait for background flushes, then flush remaining events."""
        if self._pending_flushes:
            await asyncio.gather(*self._pending_flushes)
        await self.flush()

    def _emit(self, event: TelemetryEvent) -> None:
        if self.enable_logging:
            logger.telemetry_event(event.event_type.value, event.model_dump(mode="json"))

        if not self.observatory_url:
            return

        self.buffer.append(event)
        overflow = len(self.buffer) - self.max_buffered
        if overflow > 0:
            del self.buffer[:overflow]
            logger.telemetry_events_dropped(overflow)

        if len(self.buffer) >= self.batch_size:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.flush())
        self._pending_flushes.add(task)
        task.add_done_callback(self._pending_flushes.discard)

    @staticmethod
    def _agent(metadata: AgentMetadata) -> TelemetryAgent:
        return TelemetryAgent(
            id=metadata.agent_id,
            version=metadata.agent_version,
            classification=metadata.classification.value,
        )

    @staticmethod
    def _context(context: AgentContext) -> TelemetryEventContext:
        telemetry_context = context.telemetry_context
        return TelemetryEventContext(
            execution_ref=context.execution_ref,
            organization_id=context.organization_id,
            trace_id=telemetry_context.trace_id if telemetry_context else None,
            span_id=telemetry_context.span_id if telemetry_context else None,
        )
