"""Structured logging for resolution passes.

Purpose
    Every stage of a resolution pass (source loading, policy selection,
    conversion, filtering) reports through one package logger with a shared
    record shape: ``extra={"context": {"trace_id", "source", "key", ...}}``.
    The library stays silent until the host attaches a handler.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the package logger.
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit one
      named event at the matching level.
    - ``make_event``: builds the ``source``/``key`` payload of an event.

Events
    DEBUG
        ``source_registered``, ``source_loaded``, ``source_queried``,
        ``source_skipped``, ``source_disabled``, ``merge_complete``,
        ``policy_selected``, ``converter_failed``, ``conversion_exhausted``,
        ``property_filtered`` and the file/dotenv/env loader events.
    INFO
        ``configuration_resolved`` (with ``keys``), ``configuration_empty``.
    WARNING
        ``collection_item_skipped``, ``property_rekey_collision``,
        ``unauthorized_access``.
    ERROR
        ``policy_instantiation_failed``, ``source_enablement_failed``,
        ``config_file_invalid``, ``dotenv_invalid_line``.

    The event name is the log message; ``source`` names the property source
    (``None`` for pass-wide events) and ``key`` the configuration key.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_ordinal_config_trace_id", default=None)
"""Identifier stamped on every event of the current resolution pass.

:func:`lib_ordinal_config.core.read_config` resets it at the start of each
pass; callers bind their own value to tie events to an outer request.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_ordinal_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``lib_ordinal_config`` logger for handler configuration."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the trace identifier for subsequent events; ``None`` clears it.

    Examples
    --------
    >>> bind_trace_id('pass-7')
    >>> TRACE_ID.get()
    'pass-7'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    source: str | None,
    key: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the fields of one event: *source*, *key* and any *payload* extras.

    Payload entries named ``source`` or ``key`` replace the positional values.

    Examples
    --------
    >>> make_event('env', 'db.url', {'ordinal': 300})
    {'source': 'env', 'key': 'db.url', 'ordinal': 300}
    >>> make_event(None, None)
    {'source': None, 'key': None}
    """

    event: dict[str, Any] = {"source": source, "key": key}
    if payload:
        event.update(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context: dict[str, Any] = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})
