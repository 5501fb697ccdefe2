"""Per-key combination policies and their resolver.

Purpose
-------
Decide, key by key, how values from several sources are combined. The default
is *override* (last value in ascending ordinal order wins); keys can opt into
*collect* (concatenate all values) or into a custom policy registered by name,
all through the ``<key>.combination-policy`` meta-entry.

Contents
--------
* :class:`OverridePolicy` / :class:`CollectPolicy` – built-in policies and
  their shared singletons :data:`OVERRIDE` / :data:`COLLECT`.
* :class:`PolicyRegistry` – name → factory map populated at start-up.
* :class:`CombinationPolicyResolver` – picks a policy per key, caches custom
  instances by factory identity, and acts as the adaptive policy itself.

System Role
-----------
Used by :mod:`lib_ordinal_config.application.merge` once per key and source.
The resolver only reads meta-entries handed to it, so it never calls back into
a configuration view that is still being assembled.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Final, Mapping

from ..domain import meta as meta_names
from ..domain.errors import PolicyInstantiationError
from ..domain.meta import DEFAULT_META_KEYS, MetaKeys
from ..observability import log_debug, log_error, make_event
from .ports import CombinationPolicy, PropertySource
from .tokenizer import DEFAULT_ITEM_SEPARATOR

PolicyFactory = Callable[[], CombinationPolicy]

OVERRIDE_NAME: Final[str] = "override"
COLLECT_NAME: Final[str] = "collect"


class OverridePolicy:
    """Keep the source's value when it has one, otherwise the running value.

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> OVERRIDE.collect("a", "k", MappingPropertySource("s", {"k": "b"}), {})
    'b'
    >>> OVERRIDE.collect("a", "k", MappingPropertySource("s", {}), {})
    'a'
    """

    def collect(
        self,
        current: str | None,
        key: str,
        source: PropertySource,
        meta: Mapping[str, str],
    ) -> str | None:
        entry = source.get(key)
        if entry is not None and entry.value is not None:
            return entry.value
        return current


class CollectPolicy:
    """Append the source's value to the running value using ``item-separator``.

    The separator is read from *meta* at collection time (default ``,``).

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> COLLECT.collect("x", "k", MappingPropertySource("s", {"k": "y"}), {"item-separator": "|"})
    'x|y'
    >>> COLLECT.collect(None, "k", MappingPropertySource("s", {"k": "y"}), {})
    'y'
    """

    def collect(
        self,
        current: str | None,
        key: str,
        source: PropertySource,
        meta: Mapping[str, str],
    ) -> str | None:
        entry = source.get(key)
        if entry is None or entry.value is None:
            return current
        if current is None:
            return entry.value
        separator = meta.get(meta_names.ITEM_SEPARATOR, DEFAULT_ITEM_SEPARATOR)
        return f"{current}{separator}{entry.value}"


OVERRIDE: Final[OverridePolicy] = OverridePolicy()
COLLECT: Final[CollectPolicy] = CollectPolicy()


class PolicyRegistry:
    """Map policy identifiers to zero-argument factories.

    Why
    ----
    Custom policies are plugged in by a string identifier found in
    configuration. A registry populated at start-up replaces dynamic class
    loading while keeping that capability.

    Examples
    --------
    >>> registry = PolicyRegistry()
    >>> registry.register("com.example.Last", OverridePolicy)
    >>> registry.factory("com.example.Last") is OverridePolicy
    True
    >>> registry.factory("missing") is None
    True
    """

    def __init__(self, factories: Mapping[str, PolicyFactory] | None = None) -> None:
        self._lock = threading.Lock()
        self._factories: dict[str, PolicyFactory] = dict(factories or {})

    def register(self, name: str, factory: PolicyFactory) -> None:
        """Register *factory* under *name*; re-registering replaces it."""

        if name.lower() in (OVERRIDE_NAME, COLLECT_NAME):
            raise ValueError(f"{name!r} is reserved for a built-in policy")
        with self._lock:
            self._factories[name] = factory

    def unregister(self, name: str) -> None:
        with self._lock:
            self._factories.pop(name, None)

    def factory(self, name: str) -> PolicyFactory | None:
        with self._lock:
            return self._factories.get(name)

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._factories)


class CombinationPolicyResolver:
    """Select the combination policy for each key.

    Why
    ----
    Combination is configured per key through meta-entries; the merge engine
    should not care which policy applies or how custom ones are created.

    What
    ----
    * meta-entry keys always use :data:`OVERRIDE`;
    * ``combination-policy`` absent or ``override`` → :data:`OVERRIDE`;
      ``collect`` → :data:`COLLECT` (both case-insensitive);
    * anything else is looked up in the :class:`PolicyRegistry`. Instances are
      cached by factory identity, so all keys routed to one factory share one
      instance. Lookup or construction failures are logged, the call falls back
      to :data:`OVERRIDE`, and nothing is cached, so the next call retries.

    The instance cache is a plain ``dict`` filled with ``setdefault``: when two
    threads race, one freshly built instance is discarded.

    Examples
    --------
    >>> resolver = CombinationPolicyResolver()
    >>> resolver.resolve("db.url", {"combination-policy": "COLLECT"}) is COLLECT
    True
    >>> resolver.resolve("db.url.combination-policy", {"combination-policy": "collect"}) is OVERRIDE
    True
    """

    def __init__(self, registry: PolicyRegistry | None = None, *, meta_keys: MetaKeys = DEFAULT_META_KEYS) -> None:
        self._registry = registry or PolicyRegistry()
        self._meta_keys = meta_keys
        self._instances: dict[Any, CombinationPolicy] = {}

    @property
    def registry(self) -> PolicyRegistry:
        return self._registry

    def resolve(self, key: str, meta: Mapping[str, str]) -> CombinationPolicy:
        """Return the policy governing *key* given its meta-entries."""

        if self._meta_keys.is_meta(key):
            return OVERRIDE
        identifier = meta.get(meta_names.COMBINATION_POLICY)
        if identifier is None:
            return OVERRIDE
        identifier = identifier.strip()
        lowered = identifier.lower()
        if lowered == OVERRIDE_NAME:
            return OVERRIDE
        if lowered == COLLECT_NAME:
            log_debug("policy_selected", **make_event(None, key, {"policy": COLLECT_NAME}))
            return COLLECT
        try:
            policy = self._custom(identifier)
        except PolicyInstantiationError as exc:
            log_error("policy_instantiation_failed", **make_event(None, key, {"policy": identifier, "error": str(exc)}))
            return OVERRIDE
        log_debug("policy_selected", **make_event(None, key, {"policy": identifier}))
        return policy

    def collect(
        self,
        current: str | None,
        key: str,
        source: PropertySource,
        meta: Mapping[str, str],
    ) -> str | None:
        """Resolve the policy for *key* and apply it in one step."""

        return self.resolve(key, meta).collect(current, key, source, meta)

    def clear(self) -> None:
        """Drop all cached custom policy instances."""

        self._instances.clear()

    def _custom(self, identifier: str) -> CombinationPolicy:
        factory = self._registry.factory(identifier)
        if factory is None:
            raise PolicyInstantiationError(f"No combination policy registered as {identifier!r}")
        cached = self._instances.get(factory)
        if cached is not None:
            return cached
        try:
            instance = factory()
        except Exception as exc:  # noqa: BLE001 - any construction failure degrades to override
            raise PolicyInstantiationError(f"Cannot create combination policy {identifier!r}: {exc}") from exc
        return self._instances.setdefault(factory, instance)
