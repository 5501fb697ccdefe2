"""Composition root for ``lib_ordinal_config``.

Purpose
-------
Provide the single entry point that wires the stock adapters (in-memory
defaults, structured files, dotenv, environment) into a
:class:`~lib_ordinal_config.application.context.ConfigurationContext` and
returns the resolved :class:`Config`.

Contents
--------
* :func:`build_context` – assemble a context from the usual source kinds.
* :func:`read_config` – high-level API returning a :class:`Config` instance.
* :func:`_file_sources` – internal helper loading structured files.

System Role
-----------
This module connects adapters with the application layer while emitting
structured observability signals. It is the canonical location for adjusting
default ordinals or wiring new adapters.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, Tuple, Union

from .adapters.dotenv.default import DotEnvPropertySource
from .adapters.env.default import EnvPropertySource, default_env_prefix
from .adapters.sources.file import DEFAULT_FILE_ORDINAL, FilePropertySource
from .adapters.sources.memory import MappingPropertySource
from .application.context import ConfigurationContext
from .application.ports import PropertyFilter, PropertySource
from .domain.config import Config, EMPTY_CONFIG
from .domain.errors import ConfigError, InvalidFormat, NotFound, SourceAccessError
from .observability import bind_trace_id, log_debug, log_info, make_event

FileSpec = Union[str, Tuple[str, int]]
"""A file path, or a ``(path, ordinal)`` pair overriding the default ordinal."""

DEFAULTS_ORDINAL = 0


def build_context(
    *,
    files: Sequence[FileSpec] = (),
    env_prefix: str | None = None,
    dotenv: str | None = None,
    filters: Iterable[PropertyFilter] = (),
    defaults: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigurationContext:
    """Return a :class:`ConfigurationContext` populated with the stock sources.

    Why
    ----
    Most applications need the same handful of sources; wiring them here keeps
    default ordinals and error translation consistent.

    What
    ----
    Registers, in this order: *defaults* (ordinal 0), each of *files*
    (ordinal 100 plus their position unless given explicitly), *dotenv*
    (ordinal 250) and the *env_prefix* environment source (ordinal 300).
    Missing files are skipped; unreadable or malformed ones raise
    :class:`SourceAccessError`.

    Parameters
    ----------
    files:
        Paths or ``(path, ordinal)`` pairs of TOML/JSON/YAML documents.
    env_prefix:
        Prefix for environment variables; ``None`` disables the env source.
    dotenv:
        Path to a ``.env`` file; ``None`` disables the dotenv source.
    filters:
        Filters registered in the given order.
    defaults:
        Nested mapping of fallback values.
    environ:
        Mapping used instead of :data:`os.environ` (tests).

    Examples
    --------
    >>> context = build_context(defaults={"db": {"port": 5432}}, env_prefix="DEMO", environ={"DEMO_DB__PORT": "6543"})
    >>> [source.name for source in context.sources]
    ['defaults', 'env']
    >>> context.resolve().get_as("db.port", int)
    6543
    """

    sources: list[PropertySource] = []
    if defaults:
        sources.append(MappingPropertySource("defaults", defaults, ordinal=DEFAULTS_ORDINAL))
    sources.extend(_file_sources(files))
    if dotenv is not None:
        try:
            sources.append(DotEnvPropertySource(dotenv))
        except NotFound:
            log_debug("source_skipped", **make_event(dotenv, None, {"reason": "missing"}))
        except InvalidFormat as exc:
            raise SourceAccessError(f"Failed to load dotenv file {dotenv}: {exc}") from exc
    if env_prefix is not None:
        sources.append(EnvPropertySource(env_prefix, environ=environ))
    return ConfigurationContext(sources, filters)


def read_config(
    *,
    files: Sequence[FileSpec] = (),
    env_prefix: str | None = None,
    dotenv: str | None = None,
    filters: Iterable[PropertyFilter] = (),
    defaults: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Return the merged configuration as a :class:`Config` value object.

    Parameters mirror :func:`build_context`. Returns :data:`EMPTY_CONFIG` when
    no source produced a visible key.

    Side Effects
    ------------
    Resets the active trace identifier via :func:`bind_trace_id` and emits a
    ``configuration_resolved`` event.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / "app.json"
    >>> _ = path.write_text('{"service": {"name": "demo"}}', encoding="utf-8")
    >>> read_config(files=[str(path)]).get("service.name")
    'demo'
    >>> tmp.cleanup()
    """

    bind_trace_id(None)
    context = build_context(
        files=files,
        env_prefix=env_prefix,
        dotenv=dotenv,
        filters=filters,
        defaults=defaults,
        environ=environ,
    )
    try:
        config = context.resolve()
    finally:
        context.close()
    if not config:
        log_info("configuration_empty", **make_event(None, None))
        return EMPTY_CONFIG
    log_info("configuration_resolved", **make_event(None, None, {"keys": len(config)}))
    return config


def _file_sources(files: Sequence[FileSpec]) -> list[PropertySource]:
    """Load *files*, skipping missing ones and translating parse failures.

    Examples
    --------
    >>> _file_sources(["/nonexistent/app.toml"])
    []
    """

    collected: list[PropertySource] = []
    for index, spec in enumerate(files):
        path, ordinal = spec if isinstance(spec, tuple) else (spec, DEFAULT_FILE_ORDINAL + index)
        try:
            collected.append(FilePropertySource(path, ordinal=ordinal))
        except NotFound:
            log_debug("source_skipped", **make_event(path, None, {"reason": "missing"}))
        except InvalidFormat as exc:
            raise SourceAccessError(f"Failed to load configuration file {path}: {exc}") from exc
    return collected


__all__ = [
    "Config",
    "ConfigError",
    "ConfigurationContext",
    "EMPTY_CONFIG",
    "FileSpec",
    "SourceAccessError",
    "build_context",
    "default_env_prefix",
    "read_config",
]
