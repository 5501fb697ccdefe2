"""Domain value objects flowing through the resolution pipeline.

Purpose
-------
Describe the small immutable records exchanged between sources, the merge
engine, filters and converters. Nothing here performs I/O or logging.

Contents
--------
* :class:`PropertyEntry` – a single key/value pair plus origin and metadata.
* :class:`SourceDescriptor` – name, ordinal and scannability of a source.
* :class:`ConversionContext` – per-call state handed to converters.
* :class:`FilterContext` – per-call state handed to filters.
* :func:`describe` – snapshot a source into a :class:`SourceDescriptor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..application.ports import PropertySource


@dataclass(frozen=True, slots=True)
class PropertyEntry:
    """A configuration value together with where it came from.

    Why
    ----
    Filters and callers need provenance (``source``) and per-entry metadata
    (separators, collection hints) next to the raw string value.

    Attributes
    ----------
    key:
        Non-empty configuration key (dotted by convention).
    value:
        Raw string value; ``None`` means "absent" and never survives a merge.
    source:
        Name of the source that contributed the value last.
    meta:
        Read-only mapping of meta names to values (``item-separator`` ...).

    Examples
    --------
    >>> entry = PropertyEntry("db.url", "jdbc:h2:mem", "defaults")
    >>> entry.with_value("jdbc:pg").value
    'jdbc:pg'
    >>> PropertyEntry("", "x", "s")
    Traceback (most recent call last):
    ...
    ValueError: PropertyEntry key must not be empty
    """

    key: str
    value: str | None
    source: str = ""
    meta: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("PropertyEntry key must not be empty")
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def with_value(self, value: str | None) -> PropertyEntry:
        """Return a copy carrying *value*."""

        return replace(self, value=value)

    def with_key(self, key: str) -> PropertyEntry:
        """Return a copy re-keyed to *key*."""

        return replace(self, key=key)

    def with_meta(self, meta: Mapping[str, str]) -> PropertyEntry:
        """Return a copy whose metadata is extended (and overridden) by *meta*."""

        merged = dict(self.meta)
        merged.update(meta)
        return replace(self, meta=merged)


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Static facts about a property source used for ordering and diagnostics."""

    name: str
    ordinal: int
    scannable: bool = True


def describe(source: PropertySource) -> SourceDescriptor:
    """Capture *source*'s name, ordinal and scannability in one record."""

    return SourceDescriptor(name=source.name, ordinal=source.ordinal, scannable=source.scannable)


@dataclass(slots=True)
class ConversionContext:
    """State for a single conversion call.

    Why
    ----
    Converters need the key, the requested type and the entry metadata; callers
    need to know which formats were attempted when conversion fails.

    What
    ----
    Created once per conversion, discarded afterwards. The only mutation is
    :meth:`add_supported_formats`, which appends diagnostics.

    Attributes
    ----------
    key:
        Configuration key being converted.
    target_type:
        Requested type, possibly parameterised (``list[int]``).
    config:
        The configuration view the value was read from, when available.
    annotated_element:
        Optional caller supplied marker (field, parameter) for diagnostics.
    meta:
        Meta-entries of the key (``item-separator``, ``collection-type`` ...).
    converters:
        The registry performing the conversion, so collection converters can
        convert their items.
    supported_formats:
        Formats advertised by every converter attempted so far.
    """

    key: str
    target_type: Any
    config: Any = None
    annotated_element: Any = None
    meta: Mapping[str, str] = field(default_factory=dict)
    converters: Any = None
    supported_formats: list[str] = field(default_factory=list)

    def add_supported_formats(self, owner: str, *formats: str) -> None:
        """Record *formats* advertised by *owner* (usually a converter name).

        Examples
        --------
        >>> ctx = ConversionContext(key="port", target_type=int)
        >>> ctx.add_supported_formats("IntConverter", "<int>", "0x<hex>")
        >>> ctx.supported_formats
        ['<int> (IntConverter)', '0x<hex> (IntConverter)']
        """

        for fmt in formats:
            self.supported_formats.append(f"{fmt} ({owner})")

    def derive(self, target_type: Any) -> ConversionContext:
        """Return a fresh context for converting an item of *target_type*."""

        return ConversionContext(
            key=self.key,
            target_type=target_type,
            config=self.config,
            annotated_element=self.annotated_element,
            meta=self.meta,
            converters=self.converters,
        )


@dataclass(frozen=True, slots=True)
class FilterContext:
    """State handed to filters for one entry.

    Attributes
    ----------
    key:
        Key of the entry being filtered.
    entries:
        All merged entries of the current pass (read-only); empty for
        single-key lookups.
    single_property:
        ``True`` when the filter runs for a single-key lookup rather than a
        full resolution pass.
    """

    key: str
    entries: Mapping[str, PropertyEntry] = field(default_factory=dict)
    single_property: bool = False
