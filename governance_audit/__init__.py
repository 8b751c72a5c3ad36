"""Governance Audit Agent: read-only audit and compliance visibility for governance decision trails."""

__version__ = "1.0.0"
