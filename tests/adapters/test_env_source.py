"""Environment source tests clarifying prefix handling and key translation."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_ordinal_config.adapters.env.default import DEFAULT_ENV_ORDINAL, EnvPropertySource, default_env_prefix, env_key


def test_default_env_prefix() -> None:
    """Slug values should become upper snake-case prefixes."""

    assert default_env_prefix("lib-ordinal-config") == "LIB_ORDINAL_CONFIG"


def test_env_key_translation() -> None:
    assert env_key("DB__URL") == "db.url"
    assert env_key("HOSTS__ITEM-SEPARATOR") == "hosts.item-separator"


def test_env_source_filters_by_prefix() -> None:
    environ = {
        "DEMO_DB__HOST": "db.example.com",
        "DEMO_FEATURE": "on",
        "DEMO_": "ignored",
        "DEMOX_OTHER": "ignored",
        "OTHER": "ignored",
    }
    source = EnvPropertySource("DEMO", environ=environ)
    assert dict((key, entry.value) for key, entry in source.properties().items()) == {
        "db.host": "db.example.com",
        "feature": "on",
    }
    assert source.get("db.host").source == "env"
    assert source.ordinal == DEFAULT_ENV_ORDINAL
    assert source.scannable


def test_env_source_reads_live_environment() -> None:
    environ: dict[str, str] = {}
    source = EnvPropertySource("APP_", environ=environ)
    assert source.get("port") is None
    environ["APP_PORT"] = "8080"
    assert source.get("port").value == "8080"


def test_empty_prefix_captures_everything() -> None:
    source = EnvPropertySource("", environ={"A__B": "1"}, name="all", ordinal=5)
    assert source.get("a.b").value == "1"
    assert (source.name, source.ordinal) == ("all", 5)


def test_env_source_uses_os_environ_by_default(monkeypatch) -> None:
    monkeypatch.setenv("ORDINAL_TEST_SERVICE__TIMEOUT", "15")
    assert EnvPropertySource("ORDINAL_TEST").get("service.timeout").value == "15"


NAMESPACE_KEYS = st.sampled_from(["SERVICE__TIMEOUT", "SERVICE__ENDPOINT", "LOGGING__LEVEL"])
VALUES = st.sampled_from(["0", "1", "true", "3.5", "debug"])


@given(st.dictionaries(NAMESPACE_KEYS, VALUES, max_size=3))
def test_env_source_handles_random_namespace(entries) -> None:
    """Values stay raw strings under their dotted lowercase key."""

    environ = {f"DEMO_{key}": value for key, value in entries.items()}
    environ["IGNORED"] = "1"
    properties = EnvPropertySource("DEMO", environ=environ).properties()
    assert {key: entry.value for key, entry in properties.items()} == {
        key.replace("__", ".").lower(): value for key, value in entries.items()
    }
