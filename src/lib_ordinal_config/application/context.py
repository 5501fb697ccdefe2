"""Configuration context tying sources, merge, filters and converters together.

Purpose
-------
Give applications one object to register property sources, filters, converters
and custom combination policies against, and to ask for either a full
:class:`~lib_ordinal_config.domain.config.Config` snapshot or a single key.

Contents
--------
* :class:`SourceRegistry` – lock-guarded, registration-ordered source list.
* :class:`ConfigurationContext` – the facade used by the composition root.

System Role
-----------
Sits between the adapters (which implement the ports) and the consumer-facing
:class:`Config`. Registration methods are thread-safe; resolution reads
snapshots so sources and filters run without any registry lock held.
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Iterator

from ..domain.config import Config
from ..domain.meta import DEFAULT_META_KEYS, MetaKeys
from ..domain.values import FilterContext, PropertyEntry
from ..observability import log_debug, make_event
from .converters import ConverterRegistry, default_registry
from .filters import FilterChain
from .merge import OrdinalMergeEngine
from .policies import CombinationPolicyResolver, PolicyFactory, PolicyRegistry
from .ports import Converter, PropertyFilter, PropertySource


class SourceRegistry:
    """Thread-safe list of property sources in registration order."""

    def __init__(self, sources: Iterable[PropertySource] = ()) -> None:
        self._lock = threading.Lock()
        self._sources: list[PropertySource] = list(sources)

    def add(self, *sources: PropertySource) -> None:
        with self._lock:
            self._sources.extend(sources)

    def remove(self, *sources: PropertySource) -> None:
        with self._lock:
            for source in sources:
                if source in self._sources:
                    self._sources.remove(source)

    def clear(self) -> None:
        with self._lock:
            self._sources.clear()

    def snapshot(self) -> tuple[PropertySource, ...]:
        with self._lock:
            return tuple(self._sources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __iter__(self) -> Iterator[PropertySource]:
        return iter(self.snapshot())


class ConfigurationContext:
    """Register configuration building blocks and resolve them on demand.

    Why
    ----
    Merging, filtering and conversion are separate components; callers should
    not have to wire them together for every lookup.

    What
    ----
    :meth:`resolve` merges every registered source, runs the filter chain over
    the result and wraps it in a :class:`Config` bound to the converter
    registry. :meth:`get` does the same for one key with a single-property
    filter context. Every call reads the sources again, so changes in live
    sources (environment, remote stores) show up on the next call.

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> context = ConfigurationContext()
    >>> context.add_source(MappingPropertySource("defaults", {"port": "80"}, ordinal=0))
    >>> context.add_source(MappingPropertySource("site", {"port": "8080"}, ordinal=50))
    >>> config = context.resolve()
    >>> config.get_as("port", int), config.origin("port")["source"]
    (8080, 'site')
    >>> context.get("port").value
    '8080'
    """

    def __init__(
        self,
        sources: Iterable[PropertySource] = (),
        filters: Iterable[PropertyFilter] = (),
        *,
        converters: ConverterRegistry | None = None,
        policies: PolicyRegistry | None = None,
        meta_keys: MetaKeys = DEFAULT_META_KEYS,
    ) -> None:
        self._sources = SourceRegistry(sources)
        self._filters = FilterChain(filters)
        self._converters = converters if converters is not None else default_registry()
        self._policies = CombinationPolicyResolver(policies, meta_keys=meta_keys)
        self._engine = OrdinalMergeEngine(self._policies, meta_keys=meta_keys)

    @property
    def sources(self) -> tuple[PropertySource, ...]:
        return self._sources.snapshot()

    @property
    def filters(self) -> tuple[PropertyFilter, ...]:
        return self._filters.snapshot()

    @property
    def converters(self) -> ConverterRegistry:
        return self._converters

    @property
    def policies(self) -> CombinationPolicyResolver:
        return self._policies

    def add_source(self, *sources: PropertySource) -> None:
        self._sources.add(*sources)
        for source in sources:
            log_debug("source_registered", **make_event(source.name, None, {"ordinal": source.ordinal}))

    def remove_source(self, *sources: PropertySource) -> None:
        self._sources.remove(*sources)

    def add_filter(self, *filters: PropertyFilter) -> None:
        self._filters.add(*filters)

    def remove_filter(self, *filters: PropertyFilter) -> None:
        self._filters.remove(*filters)

    def register_converter(self, target_type: Any, converter: Converter) -> None:
        """Append *converter* to the chain for *target_type*."""

        self._converters.register(target_type, converter)

    def register_policy(self, name: str, factory: PolicyFactory) -> None:
        """Make *factory* selectable through ``<key>.combination-policy=<name>``."""

        self._policies.registry.register(name, factory)

    def resolve(self) -> Config:
        """Return a filtered, immutable snapshot of every visible key."""

        merged = self._engine.resolve_all(self._sources.snapshot())
        filtered = self._filters.apply_all(merged)
        return Config(filtered, self._converters)

    def get(self, key: str) -> PropertyEntry | None:
        """Resolve and filter a single *key*; ``None`` when absent or vetoed."""

        entry = self._engine.resolve(key, self._sources.snapshot())
        if entry is None:
            return None
        filtered = self._filters.apply(entry, FilterContext(key=key, single_property=True))
        if filtered is None or filtered.value is None:
            return None
        return filtered

    def close(self) -> None:
        """Release registered sources, filters and cached policy instances."""

        self._policies.clear()
        self._filters.clear()
        self._sources.clear()
