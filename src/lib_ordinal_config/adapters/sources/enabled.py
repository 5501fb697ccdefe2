"""Conditionally enabled property source wrapper.

A wrapped source is switched on or off by an
:class:`~lib_ordinal_config.application.ports.ExpressionEvaluator` evaluated
against a set of variables (stage, host, region ...). No expression language is
bundled; callers plug one in. An evaluator that raises disables the source and
logs the failure.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Mapping

from ...application.ports import ExpressionEvaluator, PropertySource
from ...domain.values import PropertyEntry
from ...observability import log_debug, log_error, make_event


class CallableEvaluator:
    """Adapt a plain predicate to :class:`ExpressionEvaluator`.

    Examples
    --------
    >>> CallableEvaluator(lambda env: env.get("stage") == "prod").evaluate({"stage": "prod"})
    True
    """

    def __init__(self, predicate: Callable[[Mapping[str, str]], bool]) -> None:
        self._predicate = predicate

    def evaluate(self, variables: Mapping[str, str]) -> bool:
        return bool(self._predicate(variables))


class EnabledPropertySource:
    """Expose *wrapped* only while its enablement expression holds.

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> inner = MappingPropertySource("prod-only", {"db.url": "pg"})
    >>> source = EnabledPropertySource(inner, CallableEvaluator(lambda v: v["stage"] == "prod"), {"stage": "dev"})
    >>> source.enabled, source.get("db.url")
    (False, None)
    """

    def __init__(
        self,
        wrapped: PropertySource,
        evaluator: ExpressionEvaluator,
        variables: Mapping[str, str] | None = None,
    ) -> None:
        self._wrapped = wrapped
        self._evaluator = evaluator
        self._enabled = self._calculate(dict(variables or {}))

    def _calculate(self, variables: Mapping[str, str]) -> bool:
        try:
            enabled = bool(self._evaluator.evaluate(variables))
        except Exception as exc:  # noqa: BLE001 - an invalid expression disables the source
            log_error("source_enablement_failed", **make_event(self._wrapped.name, None, {"error": str(exc)}))
            return False
        if not enabled:
            log_debug("source_disabled", **make_event(self._wrapped.name, None))
        return enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def reevaluate(self, variables: Mapping[str, str]) -> bool:
        """Recompute the enablement flag against new *variables*."""

        self._enabled = self._calculate(variables)
        return self._enabled

    @property
    def name(self) -> str:
        return self._wrapped.name

    @property
    def ordinal(self) -> int:
        return self._wrapped.ordinal

    @property
    def scannable(self) -> bool:
        return self._wrapped.scannable

    def get(self, key: str) -> PropertyEntry | None:
        if not self._enabled:
            return None
        return self._wrapped.get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        if not self._enabled:
            return MappingProxyType({})
        return self._wrapped.properties()
