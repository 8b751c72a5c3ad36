"""
RuVector Service Client.

Client for persisting governance artifacts to ruvector-service, the
append-only decision event store.

IMPORTANT: Agents NEVER connect to the database behind ruvector-service.
All persistence goes through this HTTP client.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from governance_audit.config import Settings
from governance_audit.logging import get_logger
from governance_audit.schemas.decision_event import DecisionEvent

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when required client configuration is missing."""


class RuvectorError(Exception):
    """Raised when ruvector-service returns an error or is unreachable."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class RetryPolicy(BaseModel):
    """Retry configuration with exponential backoff."""
    max_retries: int = 3
    initial_delay_ms: int = 100
    max_delay_ms: int = 5000

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in seconds before retrying after `attempt`."""
        return min(self.initial_delay_ms * (2 ** attempt), self.max_delay_ms) / 1000


class RuvectorClient:
    """
    RuVector Service Client.

    Handles all persistence operations for governance agents.
    Client errors (4xx) fail fast; transport errors and 5xx are retried.
    """

    CLIENT_NAME = "governance-audit-agent"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30.0,
        retry: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize client.

        Args:
            base_url: Base URL of ruvector-service
            api_key: API key for bearer authentication
            timeout_seconds: Per-request timeout
            retry: Retry policy (defaults to 3 retries, 100ms-5s backoff)
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.retry = retry or RetryPolicy()
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "RuvectorClient":
        """
        Create a client from application settings.

        Raises:
            ConfigurationError: If the service URL or API key is missing
        """
        if not settings.ruvector_service_url:
            raise ConfigurationError("RUVECTOR_SERVICE_URL environment variable is required")
        if not settings.ruvector_api_key:
            raise ConfigurationError("RUVECTOR_API_KEY environment variable is required")

        return cls(
            base_url=settings.ruvector_service_url,
            api_key=settings.ruvector_api_key,
            timeout_seconds=settings.ruvector_timeout_seconds,
            retry=RetryPolicy(max_retries=settings.ruvector_max_retries),
        )

    async def persist_decision_event(self, event: DecisionEvent) -> None:
        """
        Persist a DecisionEvent.

        Failures degrade gracefully: the event is logged for recovery and
        the agent carries on. Authentication failures (401/403) re-raise.
        """
        try:
            await self._request("POST", "/api/v1/decision-events", json=event.model_dump(mode="json"))
        except RuvectorError as e:
            logger.decision_event_persist_failed(
                event_id=str(event.id),
                agent_id=event.agent_id,
                decision_type=event.decision_type.value,
                timestamp=event.timestamp.isoformat(),
                error=e.message,
                status=e.status
            )
            if e.status in (401, 403):
                raise

    async def query_decision_events(
        self,
        agent_id: Optional[str] = None,
        decision_type: Optional[str] = None,
        organization_id: Optional[str] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[DecisionEvent]:
        """Query historical DecisionEvents."""
        params = {
            "agent_id": agent_id,
            "decision_type": decision_type,
            "organization_id": organization_id,
            "from": from_,
            "to": to,
            "limit": limit,
            "offset": offset,
        }
        params = {k: v for k, v in params.items() if v is not None}

        data = await self._request("GET", "/api/v1/decision-events", params=params)
        items = (data or {}).get("items", [])
        return [DecisionEvent.model_validate(item) for item in items]

    async def get_decision_event(self, event_id: str) -> Optional[DecisionEvent]:
        """Get a specific DecisionEvent, or None if it does not exist."""
        try:
            data = await self._request("GET", f"/api/v1/decision-events/{event_id}")
        except RuvectorError as e:
            if e.status == 404:
                return None
            raise
        return DecisionEvent.model_validate(data) if data else None

    async def health_check(self) -> Dict[str, Any]:
        """Health check for ruvector-service."""
        start = time.monotonic()
        try:
            await self._request("GET", "/health")
        except RuvectorError as e:
            return {
                "healthy": False,
                "latency_ms": (time.monotonic() - start) * 1000,
                "details": {"error": e.message},
            }
        return {
            "healthy": True,
            "latency_ms": (time.monotonic() - start) * 1000,
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Client": self.CLIENT_NAME,
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Perform an HTTP request with retry logic.

        Returns:
            Parsed JSON body (None for empty bodies)

        Raises:
            RuvectorError: On 4xx, a non-JSON success body, or once retries are exhausted
        """
        last_error: Optional[RuvectorError] = None

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            for attempt in range(self.retry.max_retries + 1):
                try:
                    response = await client.request(method, path, json=json, params=params)
                except httpx.HTTPError as e:
                    last_error = RuvectorError(f"{method} {path} failed: {e}")
                else:
                    if response.is_success:
                        return self._parse_body(method, path, response)

                    last_error = self._error_from_response(response)
                    if 400 <= response.status_code < 500:
                        raise last_error

                if attempt < self.retry.max_retries:
                    await asyncio.sleep(self.retry.delay_for(attempt))

        raise last_error or RuvectorError("Request failed after retries")

    @staticmethod
    def _parse_body(method: str, path: str, response: httpx.Response) -> Any:
        """Decode a successful response; a non-JSON body is a store error."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RuvectorError(
                f"{method} {path} returned a non-JSON body",
                status=response.status_code,
                code="INVALID_RESPONSE_BODY",
            ) from e

    @staticmethod
    def _error_from_response(response: httpx.Response) -> RuvectorError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return RuvectorError(
            body.get("message") or response.reason_phrase or f"HTTP {response.status_code}",
            status=response.status_code,
            code=body.get("code"),
        )
