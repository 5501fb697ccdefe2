"""Public package surface for ordinal-based configuration resolution.

Consumers usually need :func:`read_config` (or :func:`build_context` for a
long-lived :class:`ConfigurationContext`) plus the :class:`Config` value object
and the error types. Adapters and building blocks stay importable from their
subpackages for applications that wire the pipeline themselves.
"""

from __future__ import annotations

from .adapters.dotenv.default import DotEnvPropertySource, find_dotenv
from .adapters.env.default import EnvPropertySource, default_env_prefix
from .adapters.filters.default import (
    CachedFilter,
    HideFilter,
    ImmutableFilter,
    MapFilter,
    MaskFilter,
    SecuredFilter,
    SecurePolicy,
)
from .adapters.sources.enabled import CallableEvaluator, EnabledPropertySource
from .adapters.sources.file import FilePropertySource
from .adapters.sources.memory import MappingPropertySource
from .application.context import ConfigurationContext
from .application.converters import ConverterRegistry, default_registry
from .application.policies import COLLECT, OVERRIDE, PolicyRegistry
from .application.tokenizer import split, split_map_entry
from .core import build_context, read_config
from .domain.config import EMPTY_CONFIG, Config, SourceInfo
from .domain.errors import (
    AccessDenied,
    ConfigError,
    ConversionError,
    InvalidFormat,
    MissingRequiredKey,
    NotFound,
    PolicyInstantiationError,
    SourceAccessError,
)
from .domain.values import ConversionContext, FilterContext, PropertyEntry
from .observability import bind_trace_id, get_logger

__all__ = [
    "AccessDenied",
    "COLLECT",
    "CachedFilter",
    "CallableEvaluator",
    "Config",
    "ConfigError",
    "ConfigurationContext",
    "ConversionContext",
    "ConversionError",
    "ConverterRegistry",
    "DotEnvPropertySource",
    "EMPTY_CONFIG",
    "EnabledPropertySource",
    "EnvPropertySource",
    "FilePropertySource",
    "FilterContext",
    "HideFilter",
    "ImmutableFilter",
    "InvalidFormat",
    "MapFilter",
    "MappingPropertySource",
    "MaskFilter",
    "MissingRequiredKey",
    "NotFound",
    "OVERRIDE",
    "PolicyInstantiationError",
    "PolicyRegistry",
    "PropertyEntry",
    "SecurePolicy",
    "SecuredFilter",
    "SourceAccessError",
    "SourceInfo",
    "bind_trace_id",
    "build_context",
    "default_env_prefix",
    "default_registry",
    "find_dotenv",
    "get_logger",
    "read_config",
    "split",
    "split_map_entry",
]
