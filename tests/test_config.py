from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from chartkeeper.config import (
    ChartKeeperConfig,
    apply_environment,
    discover_config_file,
    load_config,
    _parse_section,
    _pyproject_has_section,
    _read_toml,
)
from chartkeeper.exceptions import ConfigError
from chartkeeper.models import DependencyGroup, IgnoreRule, RegistryCredential


FULL_CONFIG = """\
[chartkeeper]
update_strategy = "minor"
changelog_enabled = false
cache_ttl = 1800

[[chartkeeper.ignore]]
dependency_name = "postgresql"
update_types = ["major"]

[[chartkeeper.ignore]]
dependency_name = "legacy-*"

[chartkeeper.groups.bitnami]
patterns = ["redis*", "postgresql"]
update_types = ["minor", "patch"]
"""


@pytest.mark.unit
class TestChartKeeperConfig:
    """Tests for ChartKeeperConfig dataclass."""

    def test_defaults(self) -> None:
        config = ChartKeeperConfig()

        assert config.update_strategy == "all"
        assert config.changelog_enabled is True
        assert config.cache_enabled is True
        assert config.cache_ttl == 3600
        assert config.ignore == []
        assert config.groups == {}
        assert config.source_path is None
        assert config.configured_platforms() == []

    def test_secrets_hidden(self) -> None:
        config = ChartKeeperConfig(github_token="ghp_secret", bitbucket_credentials=("u", "p"))

        assert "ghp_secret" not in repr(config)
        log_dict = config.to_log_dict()
        assert "ghp_secret" not in str(log_dict)
        assert log_dict["platforms"] == ["github", "bitbucket"]


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file function."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[chartkeeper]\n", encoding="utf-8")
        (tmp_path / "chartkeeper.toml").write_text("[chartkeeper]\n", encoding="utf-8")

        with patch("chartkeeper.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file(config_file) == config_file.resolve()

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Configuration file not found"):
            discover_config_file(tmp_path / "missing.toml")

    def test_chartkeeper_toml_before_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "chartkeeper.toml").write_text("[chartkeeper]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.chartkeeper]\n", encoding="utf-8")

        with patch("chartkeeper.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "chartkeeper.toml"

    def test_pyproject_requires_section(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.black]\nline-length = 100\n", encoding="utf-8")

        with patch("chartkeeper.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None

        pyproject.write_text("[tool.chartkeeper]\ncache_ttl = 60\n", encoding="utf-8")
        with patch("chartkeeper.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == pyproject

    def test_broken_pyproject_ignored(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.chartkeeper\n", encoding="utf-8")

        assert _pyproject_has_section(pyproject) is False


@pytest.mark.unit
class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        with patch("chartkeeper.config.Path.cwd", return_value=tmp_path):
            config = load_config(environ={})

        assert config == ChartKeeperConfig()

    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "chartkeeper.toml"
        path.write_text(FULL_CONFIG, encoding="utf-8")

        config = load_config(path, environ={})

        assert config.update_strategy == "minor"
        assert config.changelog_enabled is False
        assert config.cache_ttl == 1800
        assert config.ignore == [
            IgnoreRule(dependency_name="postgresql", update_types=["major"]),
            IgnoreRule(dependency_name="legacy-*"),
        ]
        assert config.groups == {
            "bitnami": DependencyGroup(patterns=["redis*", "postgresql"], update_types=["minor", "patch"])
        }
        assert config.source_path == path.resolve()

    def test_pyproject_section(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n\n[tool.chartkeeper]\nupdate_strategy = "patch"\n', encoding="utf-8")

        assert load_config(path, environ={}).update_strategy == "patch"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "chartkeeper.toml"
        path.write_text("[chartkeeper\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path, environ={})

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        path = tmp_path / "chartkeeper.toml"
        path.write_text(FULL_CONFIG, encoding="utf-8")

        config = load_config(
            path,
            environ={"CHARTKEEPER_UPDATE_STRATEGY": "Patch", "GITHUB_TOKEN": "gh", "GITLAB_TOKEN": ""},
        )

        assert config.update_strategy == "patch"
        assert config.github_token == "gh"
        assert config.gitlab_token is None


@pytest.mark.unit
class TestApplyEnvironment:
    def test_invalid_strategy(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            apply_environment(ChartKeeperConfig(), {"CHARTKEEPER_UPDATE_STRATEGY": "latest"})

        assert exc_info.value.option == "CHARTKEEPER_UPDATE_STRATEGY"

    def test_bitbucket_needs_both_values(self) -> None:
        partial = apply_environment(ChartKeeperConfig(), {"BITBUCKET_USERNAME": "me"})
        full = apply_environment(
            ChartKeeperConfig(), {"BITBUCKET_USERNAME": "me", "BITBUCKET_APP_PASSWORD": "pw"}
        )

        assert partial.bitbucket_credentials is None
        assert full.bitbucket_credentials == ("me", "pw")


REGISTRY_CONFIG = """\
[[chartkeeper.registry_credentials]]
registry = "charts.example.com"
username = "deploy"
password_env = "CHARTS_PASSWORD"

[[chartkeeper.registry_credentials]]
registry = "oci://ghcr.io/org"
auth_type = "bearer"
password = "ghcr-token"
"""


@pytest.mark.unit
class TestRegistryCredentials:
    def test_loaded_and_resolved(self, tmp_path: Path) -> None:
        path = tmp_path / "chartkeeper.toml"
        path.write_text(REGISTRY_CONFIG, encoding="utf-8")

        config = load_config(path, environ={"CHARTS_PASSWORD": "s3cret"})

        basic, bearer = config.registry_credentials
        assert basic == RegistryCredential(
            registry="charts.example.com",
            username="deploy",
            password="s3cret",
            password_env="CHARTS_PASSWORD",
        )
        assert basic.authorization_header() == "Basic ZGVwbG95OnMzY3JldA=="
        assert bearer.auth_type == "bearer"
        assert bearer.authorization_header() == "Bearer ghcr-token"
        assert config.to_log_dict()["registries"] == ["charts.example.com", "oci://ghcr.io/org"]
        assert "s3cret" not in repr(config)

    def test_missing_password_env(self, tmp_path: Path) -> None:
        path = tmp_path / "chartkeeper.toml"
        path.write_text(REGISTRY_CONFIG, encoding="utf-8")

        with pytest.raises(ConfigError, match="CHARTS_PASSWORD") as exc_info:
            load_config(path, environ={})

        assert exc_info.value.option == "CHARTS_PASSWORD"

    @pytest.mark.parametrize(
        "entry,message",
        [
            ({"username": "u", "password": "p"}, "registry is required"),
            ({"registry": "", "username": "u", "password": "p"}, "registry must be a non-empty string"),
            ({"registry": "r", "auth_type": "digest", "password": "p"}, "auth_type must be one of basic, bearer"),
            ({"registry": "r", "username": "u"}, "exactly one of password or password_env"),
            ({"registry": "r", "username": "u", "password": "p", "password_env": "E"}, "exactly one of"),
            ({"registry": "r", "password": "p"}, "username is required for basic"),
            ({"registry": "r", "password": "p", "token": "t"}, "Unknown keys in registry_credentials\\[0\\]"),
            ({"registry": "r", "username": 5, "password": "p"}, "username must be a non-empty string"),
        ],
    )
    def test_invalid_entries(self, entry: dict, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            _parse_section({"registry_credentials": [entry]}, config_path="c.toml")

    def test_not_an_array(self) -> None:
        with pytest.raises(ConfigError, match="registry_credentials must be an array of tables"):
            _parse_section({"registry_credentials": {"registry": "r"}}, config_path="c.toml")

    def test_bearer_needs_no_username(self) -> None:
        config = _parse_section(
            {"registry_credentials": [{"registry": "r", "auth_type": "bearer", "password": "t"}]},
            config_path="c.toml",
        )
        assert config.registry_credentials[0].username is None


@pytest.mark.unit
class TestParseSection:
    """Validation of the ``[chartkeeper]`` table."""

    def test_empty(self) -> None:
        assert _parse_section({}, config_path="c.toml") == ChartKeeperConfig()

    @pytest.mark.parametrize(
        "section,message",
        [
            ({"bogus": 1}, "Unknown configuration keys: bogus"),
            ({"update_strategy": "latest"}, "update_strategy must be one of"),
            ({"cache_enabled": "yes"}, "cache_enabled must be a boolean"),
            ({"cache_ttl": -1}, "cache_ttl must be a non-negative number"),
            ({"cache_ttl": True}, "cache_ttl must be a non-negative number"),
            ({"ignore": {"dependency_name": "x"}}, "ignore must be an array of tables"),
            ({"ignore": [{"versions": ["1.0.0"]}]}, "dependency_name must be a non-empty string"),
            ({"ignore": [{"dependency_name": "x", "reason": "old"}]}, "Unknown keys in ignore\\[0\\]"),
            ({"ignore": [{"dependency_name": "x", "update_types": ["huge"]}]}, "invalid update types: huge"),
            ({"groups": {"g": {"update_types": ["minor"]}}}, "must be a table with a 'patterns' array"),
            ({"groups": {"g": {"patterns": "redis"}}}, "groups.g.patterns must be an array of strings"),
        ],
    )
    def test_invalid(self, section: dict, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            _parse_section(section, config_path="c.toml")

    def test_float_ttl(self) -> None:
        assert _parse_section({"cache_ttl": 0.5}, config_path="c.toml").cache_ttl == 0.5


@pytest.mark.unit
def test_read_toml_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read configuration file"):
        _read_toml(tmp_path / "nope.toml")
