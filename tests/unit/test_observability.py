"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour
downstream consumers rely on.
"""

from __future__ import annotations

import logging

import pytest

from lib_ordinal_config import bind_trace_id, get_logger
from lib_ordinal_config.observability import TRACE_ID, log_error, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert logger.name == "lib_ordinal_config"
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_ordinal_config")
    bind_trace_id("trace-123")
    try:
        log_info("merge_complete", source="env", key=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert record.getMessage() == "merge_complete"
    assert getattr(record, "context") == {"trace_id": "trace-123", "source": "env", "key": None}


def test_error_severity(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_ordinal_config")
    log_error("policy_instantiation_failed", **make_event(None, "k", {"policy": "x"}))
    assert caplog.records[-1].levelno == logging.ERROR


def test_bind_trace_id_clears_context() -> None:
    """Clearing the trace ID should reset the context variable to None."""

    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    """make_event should merge optional metadata without mutating base keys."""

    payload = {"ordinal": 300}
    event = make_event("env", "db.url", payload)
    assert event == {"source": "env", "key": "db.url", "ordinal": 300}
    assert payload == {"ordinal": 300}
    assert make_event(None, None) == {"source": None, "key": None}
