"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the resolution pipeline, adapters,
the composition root, and consuming applications. The hierarchy lives in the
domain layer to respect the Clean Architecture dependency rule (outer layers
may depend on inner layers, not vice versa).

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration-related
  issues.
* :class:`InvalidFormat` – parsing problems while reading files or env sources.
* :class:`NotFound` – raised when an expected configuration resource is missing.
* :class:`MissingRequiredKey` – a required key resolved to nothing.
* :class:`ConversionError` – a present value could not be converted.
* :class:`SourceAccessError` – a property source failed while being queried.
* :class:`PolicyInstantiationError` – a custom combination policy could not be
  created.
* :class:`AccessDenied` – a secured property was read without a granted role.

System Role
-----------
Conversion and combination failures are recovered inside the pipeline and only
surface through logs; the remaining errors propagate so callers can decide
whether a condition is fatal. Callers catch :class:`ConfigError` to handle all
library failures uniformly.
"""

from __future__ import annotations

from typing import Sequence


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_ordinal_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and dotenv
    parsing helpers.
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, directories, keys).

    Why
    ----
    Allow adapters to signal absence without aborting the entire resolution.
    """


class MissingRequiredKey(NotFound):
    """A key the caller declared as required is absent from the configuration.

    Why
    ----
    "Not found" must stay distinguishable from "found but unconvertible"; the
    merge engine only reports absence, the caller decides it is fatal.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"Required configuration key not found: {key}")
        self.key = key


class ConversionError(ConfigError):
    """A resolved value could not be converted into the requested type.

    Attributes
    ----------
    key:
        Configuration key whose value failed to convert.
    supported_formats:
        Formats advertised by every converter that was attempted, useful for
        telling operators what the value should have looked like.
    """

    def __init__(self, key: str, target: object, supported_formats: Sequence[str] = ()) -> None:
        formats = ", ".join(supported_formats) or "none"
        super().__init__(f"Cannot convert value of {key!r} to {target!r} (supported formats: {formats})")
        self.key = key
        self.target = target
        self.supported_formats = tuple(supported_formats)


class SourceAccessError(ConfigError):
    """Raised when a property source cannot be materialised or queried.

    The merge engine never catches this; it propagates to the caller, which
    decides whether to drop the source and retry.
    """


class PolicyInstantiationError(ConfigError):
    """A custom combination policy could not be looked up or constructed.

    Logged by the policy resolver, which then falls back to the override policy
    for the current call only.
    """


class AccessDenied(ConfigError):
    """A secured property was accessed without any of its required roles."""
