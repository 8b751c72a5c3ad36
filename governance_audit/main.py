"""
Governance Audit Agent - FastAPI Application

Main entry point for the audit and compliance visibility API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from governance_audit import __version__
from governance_audit.api import agents
from governance_audit.api.dependencies import get_governance_audit_agent
from governance_audit.config import settings
from governance_audit.logging import setup_logging

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Flush buffered telemetry on shutdown."""
    yield
    if get_governance_audit_agent.cache_info().currsize == 0:
        return
    agent = get_governance_audit_agent()
    if agent.telemetry:
        await agent.telemetry.shutdown()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Read-only audit summaries and compliance visibility for governance decision trails",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(agents.router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/ready")
def readiness_check():
    """Readiness check: the decision event store must be configured."""
    ready = bool(settings.ruvector_service_url and settings.ruvector_api_key)
    return {"status": "ready" if ready else "not_ready"}

