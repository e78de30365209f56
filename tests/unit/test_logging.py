"""Unit tests for structured logging."""

import json
import logging

from stateful_agents.logging import JsonFormatter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="stateful_agents.agents.runtime",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="State transition to %s",
        args=("reviewing",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_nests_extra_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record(workflow="research", step=2)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "stateful_agents.agents.runtime"
    assert payload["message"] == "State transition to reviewing"
    assert payload["extra"] == {"workflow": "research", "step": 2}
    assert "timestamp" in payload


def test_json_formatter_omits_empty_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
    assert "exception" not in payload
