"""Environment variable adapter.

Purpose
-------
Expose prefixed process environment variables as a property source. It
implements the :class:`~lib_ordinal_config.application.ports.PropertySource`
port and, with its default ordinal, overrides file and dotenv sources.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured.
* Supports ``__`` as a nesting delimiter (``APP_DB__URL`` → ``db.url``).
* Values stay raw strings; typing is the converter chain's job.
* Reads the environment on every call so later changes are visible.
"""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Final, Mapping

from ...domain.values import PropertyEntry
from ...observability import log_debug

DEFAULT_ENV_ORDINAL: Final[int] = 300
NESTING_DELIMITER: Final[str] = "__"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-ordinal-config')
    'LIB_ORDINAL_CONFIG'
    """

    return slug.replace("-", "_").upper()


def env_key(name: str) -> str:
    """Translate a stripped variable name into a dotted configuration key.

    Examples
    --------
    >>> env_key("DB__URL")
    'db.url'
    >>> env_key("DB__URL__COMBINATION-POLICY")
    'db.url.combination-policy'
    """

    return ".".join(part.lower() for part in name.split(NESTING_DELIMITER))


class EnvPropertySource:
    """Serve environment variables that belong to the configuration namespace."""

    def __init__(
        self,
        prefix: str,
        *,
        ordinal: int = DEFAULT_ENV_ORDINAL,
        environ: Mapping[str, str] | None = None,
        name: str = "env",
    ) -> None:
        """Initialise the source with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        prefix:
            Prefix filter (upper-case). ``_`` is appended if missing; an empty
            prefix captures every variable.
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        self._environ = environ if environ is not None else os.environ
        self._ordinal = ordinal
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def ordinal(self) -> int:
        return self._ordinal

    @property
    def scannable(self) -> bool:
        return True

    def get(self, key: str) -> PropertyEntry | None:
        return self.properties().get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        """Return entries for every variable carrying the prefix.

        Examples
        --------
        >>> env = {'DEMO_SERVICE__ENABLED': 'true', 'DEMO_SERVICE__RETRIES': '3', 'OTHER': 'x'}
        >>> source = EnvPropertySource('DEMO', environ=env)
        >>> sorted(source.properties())
        ['service.enabled', 'service.retries']
        >>> source.get('service.retries').value
        '3'
        """

        collected: dict[str, PropertyEntry] = {}
        for variable, value in self._environ.items():
            if self._prefix and not variable.startswith(self._prefix):
                continue
            stripped = variable[len(self._prefix) :] if self._prefix else variable
            if not stripped:
                continue
            key = env_key(stripped)
            collected[key] = PropertyEntry(key=key, value=value, source=self._name)
        log_debug("env_variables_loaded", source=self._name, key=None, keys=sorted(collected))
        return MappingProxyType(collected)
