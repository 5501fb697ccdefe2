"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts that sources, converters, filters and
combination policies must satisfy so the resolution pipeline can orchestrate
behaviour without depending on concrete implementations.

Contents
--------
* :class:`PropertySource` – supplies raw key/value pairs plus an ordinal.
* :class:`Converter` – turns a raw string into a typed value (or ``None``).
* :class:`PropertyFilter` – transforms or vetoes a merged entry.
* :class:`CombinationPolicy` – merges one source's value into the running
  value of a key.
* :class:`ExpressionEvaluator` – decides whether a wrapped source is enabled.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Adapters implement them and
tests verify the default adapters keep satisfying them.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from ..domain.values import ConversionContext, FilterContext, PropertyEntry


@runtime_checkable
class PropertySource(Protocol):
    """Provide raw configuration entries with a precedence ordinal.

    Why
    ----
    Keep file parsing, environment scanning and remote access outside the
    pipeline; the merge engine only needs this narrow view.

    Notes
    -----
    ``get`` and ``properties`` may block (delegated I/O). Failures should be
    normalised to "no value"; anything raised propagates to the caller of the
    merge engine.
    """

    @property
    def name(self) -> str:
        """Human-readable origin name (file path, ``env`` ...)."""

    @property
    def ordinal(self) -> int:
        """Precedence; higher ordinals are consumed later and win on override."""

    @property
    def scannable(self) -> bool:
        """Whether :meth:`properties` enumerates every entry."""

    def get(self, key: str) -> PropertyEntry | None:
        """Return the entry stored under *key* or ``None``."""

    def properties(self) -> Mapping[str, PropertyEntry]:
        """Return all entries (empty for non-scannable sources)."""


@runtime_checkable
class Converter(Protocol):
    """Convert a raw string into a typed value.

    ``supported_format`` is recorded into the conversion context before every
    attempt, whatever the outcome.
    """

    supported_format: str

    def convert(self, raw: str, context: ConversionContext) -> Any | None:
        """Return the converted value or ``None``; may raise on bad input."""


@runtime_checkable
class PropertyFilter(Protocol):
    """Transform or veto a merged entry."""

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        """Return the (possibly changed) entry or ``None`` to drop it."""


@runtime_checkable
class CombinationPolicy(Protocol):
    """Merge the value *source* holds for *key* into *current*."""

    def collect(
        self,
        current: str | None,
        key: str,
        source: PropertySource,
        meta: Mapping[str, str],
    ) -> str | None:
        """Return the new running value for *key*."""


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Evaluate an enablement expression against a set of variables."""

    def evaluate(self, variables: Mapping[str, str]) -> bool:
        """Return ``True`` when the guarded source should be active."""
