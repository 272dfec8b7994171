"""
Tests for structured transition logging.
"""

import json
import logging

import pytest

from nomad.shared.logging.config import (
    TRANSITIONS_LOGGER,
    StructuredFormatter,
    log_state_transition,
)


class TestLogStateTransition:
    """Tests for transition events."""

    def test_summary_keeps_known_non_empty_keys(self, caplog):
        with caplog.at_level(logging.INFO, logger=TRANSITIONS_LOGGER):
            log_state_transition(
                "job_stage",
                {"job_id": "job-1", "stage": "combining", "percentage": 80, "city": None, "noise": 1},
                extra={"city": "Paris"},
            )

        record = caplog.records[-1]
        assert record.name == TRANSITIONS_LOGGER
        assert record.transition == {
            "event": "job_stage",
            "summary": {"job_id": "job-1", "stage": "combining", "percentage": 80},
            "extra": {"city": "Paris"},
        }
        assert "[transition=job_stage]" in record.getMessage()

    def test_formatter_writes_json(self, caplog):
        with caplog.at_level(logging.INFO, logger=TRANSITIONS_LOGGER):
            log_state_transition("conversation_transition", {"session_id": "s-1", "state": "greeting"})

        entry = json.loads(StructuredFormatter().format(caplog.records[-1]))
        assert entry["level"] == "INFO"
        assert entry["logger"] == TRANSITIONS_LOGGER
        assert entry["transition"]["summary"] == {"session_id": "s-1", "state": "greeting"}
        assert "extra" not in entry["transition"]

    def test_formatter_plain_record(self):
        record = logging.LogRecord("nomad.test", logging.WARNING, "", 0, "hello %s", ("world",), None)
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "hello world"
        assert "transition" not in entry


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
