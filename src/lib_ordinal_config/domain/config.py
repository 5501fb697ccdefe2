"""Domain-level configuration value object.

Purpose
-------
Anchor the immutable `Config` value object that carries the resolved entries
and their provenance to consumers. This module belongs to the domain layer and
contains no I/O.

Contents
--------
* :class:`SourceInfo` – typed metadata describing where a key came from.
* :class:`Converters` – structural type of the converter registry used for
  typed access.
* :class:`Config` – ``Mapping`` implementation exposing typed lookups,
  required-key checks, provenance lookups, and functional overrides.
* :data:`EMPTY_CONFIG` – canonical empty instance.

System Role
-----------
Every call to :meth:`ConfigurationContext.resolve` or :func:`read_config`
returns a :class:`Config`. Keys are flat dotted strings and values are the raw
merged strings; typed access goes through the converter chain.
"""

from __future__ import annotations

import json
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Protocol, TypedDict, TypeVar, overload

from .errors import ConversionError, MissingRequiredKey
from .values import ConversionContext, PropertyEntry


class SourceInfo(TypedDict):
    """Describe the origin of a resolved configuration key.

    Attributes
    ----------
    source:
        Name of the source that contributed the value last.
    key:
        Configuration key.
    meta:
        Meta-entries attached to the key (``combination-policy`` ...).
    """

    source: str
    key: str
    meta: dict[str, str]


class Converters(Protocol):
    """What :class:`Config` needs from a converter registry."""

    def convert(self, raw: str, target_type: Any, context: ConversionContext) -> Any | None: ...


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Config(MappingABC[str, str]):
    """Immutable mapping returned to library consumers.

    Why
    ----
    Callers require a read-only structure that behaves like a dictionary yet
    offers typed access, provenance insight and safe override mechanics.

    Parameters
    ----------
    _entries:
        Resolved entries keyed by configuration key, wrapped in a
        ``mappingproxy`` during initialisation.
    _converters:
        Registry used by :meth:`get_as` and :meth:`require`; ``None`` limits the
        instance to raw string access.

    Examples
    --------
    >>> cfg = Config({"service.timeout": PropertyEntry("service.timeout", "30", "defaults")})
    >>> cfg.get("service.timeout")
    '30'
    >>> cfg.origin("service.timeout")
    {'source': 'defaults', 'key': 'service.timeout', 'meta': {}}
    >>> cfg.with_overrides({"service.timeout": "60"})["service.timeout"]
    '60'
    """

    _entries: Mapping[str, PropertyEntry]
    _converters: Converters | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_entries", MappingProxyType(dict(self._entries)))

    def __getitem__(self, key: str) -> str:
        value = self._entries[key].value
        if value is None:  # pragma: no cover - merged entries always carry a value
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, key: str) -> PropertyEntry | None:
        """Return the full :class:`PropertyEntry` for *key* or ``None``."""

        return self._entries.get(key)

    @overload
    def get(self, key: str, default: T) -> str | T: ...

    @overload
    def get(self, key: str, default: None = ...) -> str | None: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Return the raw value for *key* or *default* when absent."""

        entry = self._entries.get(key)
        if entry is None or entry.value is None:
            return default
        return entry.value

    def get_as(self, key: str, target_type: Any, *, default: Any = None, annotated_element: Any = None) -> Any:
        """Return *key* converted to *target_type*.

        Why
        ----
        Optional lookups should degrade quietly: a missing key and a value no
        converter accepts both yield *default*.

        Examples
        --------
        >>> from lib_ordinal_config.application.converters import default_registry
        >>> cfg = Config({"port": PropertyEntry("port", "8080", "env")}, default_registry())
        >>> cfg.get_as("port", int)
        8080
        >>> cfg.get_as("missing", int, default=80)
        80
        """

        entry = self._entries.get(key)
        if entry is None or entry.value is None:
            return default
        result = self._convert(entry, target_type, annotated_element)[0]
        return default if result is None else result

    def require(self, key: str, target_type: Any = str, *, annotated_element: Any = None) -> Any:
        """Return *key* converted to *target_type* or raise.

        Raises
        ------
        MissingRequiredKey
            When no source provided *key*.
        ConversionError
            When the value exists but no converter accepted it; the error lists
            the formats every attempted converter supports.
        """

        entry = self._entries.get(key)
        if entry is None or entry.value is None:
            raise MissingRequiredKey(key)
        result, context = self._convert(entry, target_type, annotated_element)
        if result is None:
            raise ConversionError(key, target_type, context.supported_formats)
        return result

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no source produced it."""

        entry = self._entries.get(key)
        if entry is None:
            return None
        return SourceInfo(source=entry.source, key=entry.key, meta=dict(entry.meta))

    def as_dict(self) -> dict[str, str]:
        """Return a mutable ``dict`` of keys to raw values."""

        return {key: entry.value for key, entry in self._entries.items() if entry.value is not None}

    def provenance(self) -> dict[str, SourceInfo]:
        """Return :meth:`origin` for every key."""

        return {key: info for key in self._entries if (info := self.origin(key)) is not None}

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the key/value pairs to JSON.

        Examples
        --------
        >>> Config({"a": PropertyEntry("a", "1", "s")}).to_json()
        '{"a":"1"}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def with_overrides(self, overrides: Mapping[str, str], *, source: str = "override") -> Config:
        """Produce a copy of the configuration with *overrides* applied.

        Overridden keys keep their meta-entries and report *source* as origin.
        """

        updated = dict(self._entries)
        for key, value in overrides.items():
            previous = updated.get(key)
            meta = previous.meta if previous is not None else {}
            updated[key] = PropertyEntry(key=key, value=value, source=source, meta=meta)
        return Config(updated, self._converters)

    def _convert(self, entry: PropertyEntry, target_type: Any, annotated_element: Any) -> tuple[Any, ConversionContext]:
        context = ConversionContext(
            key=entry.key,
            target_type=target_type,
            config=self,
            annotated_element=annotated_element,
            meta=entry.meta,
            converters=self._converters,
        )
        if target_type is str:
            return entry.value, context
        if self._converters is None:
            return None, context
        return self._converters.convert(entry.value or "", target_type, context), context


EMPTY_CONFIG = Config(MappingProxyType({}))
"""Canonical empty configuration; safe to share because :class:`Config` is immutable."""
