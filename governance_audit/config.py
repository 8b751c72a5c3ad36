"""
Configuration management for the Governance Audit Agent.
Uses pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings."""

    # API
    app_name: str = "Governance Audit Agent"
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # Decision event store (ruvector-service)
    ruvector_service_url: Optional[str] = None
    ruvector_api_key: Optional[str] = None
    ruvector_timeout_seconds: float = 30.0
    ruvector_max_retries: int = 3

    # Agent behaviour
    agent_dry_run: bool = False
    per_category_compliance: bool = False

    # Telemetry (LLM-Observatory)
    llm_observatory_url: Optional[str] = None
    llm_observatory_api_key: Optional[str] = None
    telemetry_enable_logging: bool = True
    telemetry_batch_size: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
