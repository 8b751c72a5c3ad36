"""
Structured logging tests.
"""

import json
import logging

from governance_audit.logging import JSONFormatter, get_logger


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("governance_audit.test", logging.INFO, __file__, 1, "hello", None, None)
    record.extra_fields = {"event": "audit.started", "execution_ref": "exec-001"}

    entry = json.loads(JSONFormatter().format(record))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "governance_audit.test"
    assert entry["message"] == "hello"
    assert entry["event"] == "audit.started"
    assert entry["execution_ref"] == "exec-001"
    assert entry["timestamp"].endswith("Z")


def test_domain_events_carry_fields(caplog):
    logger = get_logger("governance_audit.test")

    with caplog.at_level(logging.INFO, logger="governance_audit.test"):
        logger.audit_completed("exec-001", "evt-1", 84.0, 1, duration_ms=12.0)

    record = caplog.records[-1]
    assert record.getMessage() == "Audit completed: score=84.0, 1 findings"
    assert record.extra_fields["event"] == "audit.completed"
    assert record.extra_fields["decision_event_id"] == "evt-1"
