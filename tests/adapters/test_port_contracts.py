"""Adapter contract tests for the default ports implementation.

Verify the stock adapters keep satisfying the application-layer ports in
``lib_ordinal_config.application.ports`` so dependency inversion stays
enforceable through automated tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_ordinal_config.adapters.dotenv.default import DotEnvPropertySource
from lib_ordinal_config.adapters.env.default import EnvPropertySource
from lib_ordinal_config.adapters.filters.default import (
    CachedFilter,
    HideFilter,
    ImmutableFilter,
    MapFilter,
    MaskFilter,
    SecuredFilter,
)
from lib_ordinal_config.adapters.sources.enabled import CallableEvaluator, EnabledPropertySource
from lib_ordinal_config.adapters.sources.file import FilePropertySource
from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
from lib_ordinal_config.application import ports
from lib_ordinal_config.application.converters import default_registry
from lib_ordinal_config.application.policies import COLLECT, OVERRIDE, CombinationPolicyResolver


def test_sources_satisfy_property_source(tmp_path: Path) -> None:
    toml = tmp_path / "app.toml"
    toml.write_text("k = 1\n", encoding="utf-8")
    dotenv = tmp_path / ".env"
    dotenv.write_text("K=1\n", encoding="utf-8")
    memory = MappingPropertySource("m", {"k": 1})
    sources = [
        memory,
        FilePropertySource(str(toml)),
        DotEnvPropertySource(str(dotenv)),
        EnvPropertySource("X", environ={"X_K": "1"}),
        EnabledPropertySource(memory, CallableEvaluator(lambda variables: True)),
    ]
    for source in sources:
        assert isinstance(source, ports.PropertySource)
        assert source.get("k").value == "1"


@pytest.mark.parametrize(
    "filter_",
    [HideFilter("x"), MaskFilter("x"), MapFilter(), ImmutableFilter(), CachedFilter(), SecuredFilter()],
)
def test_filters_satisfy_property_filter(filter_) -> None:
    assert isinstance(filter_, ports.PropertyFilter)


def test_default_converters_satisfy_converter() -> None:
    registry = default_registry()
    for target in (bool, int, float, list, dict):
        for converter in registry.converters_for(target):
            assert isinstance(converter, ports.Converter)
            assert isinstance(converter.supported_format, str) and converter.supported_format


def test_policies_satisfy_combination_policy() -> None:
    for policy in (OVERRIDE, COLLECT, CombinationPolicyResolver()):
        assert isinstance(policy, ports.CombinationPolicy)


def test_callable_evaluator_satisfies_expression_evaluator() -> None:
    assert isinstance(CallableEvaluator(lambda variables: True), ports.ExpressionEvaluator)
