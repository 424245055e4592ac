"""Configuration file loader for chartkeeper.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``chartkeeper.toml``: settings under ``[chartkeeper]`` table
- ``pyproject.toml``: settings under ``[tool.chartkeeper]`` table

Discovery order:

1. Explicit path from ``--config`` or ``CHARTKEEPER_CONFIG``
2. ``chartkeeper.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.chartkeeper]`` section

Configuration precedence: defaults < config file < environment < CLI args.
Platform credentials are read from the environment only.

Example (``chartkeeper.toml``)::

    [chartkeeper]
    update_strategy = "minor"
    cache_ttl = 1800

    [[chartkeeper.ignore]]
    dependency_name = "postgresql"
    update_types = ["major"]

    [chartkeeper.groups.bitnami]
    patterns = ["redis*", "postgresql"]

    [[chartkeeper.registry_credentials]]
    registry = "charts.example.com"
    username = "deploy"
    password_env = "CHARTS_PASSWORD"
"""

from __future__ import annotations

import os
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from chartkeeper.exceptions import ConfigError
from chartkeeper.models.registry import AUTH_TYPES, RegistryCredential
from chartkeeper.models.rules import DependencyGroup, IgnoreRule
from chartkeeper.utils.logger import get_logger
from chartkeeper.constants import (
    DEFAULT_CACHE_ENABLED,
    DEFAULT_CACHE_TTL,
    DEFAULT_CHANGELOG_ENABLED,
    DEFAULT_UPDATE_STRATEGY,
    ENV_BITBUCKET_APP_PASSWORD,
    ENV_BITBUCKET_USERNAME,
    ENV_GITHUB_TOKEN,
    ENV_GITLAB_TOKEN,
    ENV_UPDATE_STRATEGY,
    UPDATE_STRATEGIES,
    UPDATE_TYPES,
)

logger = get_logger("config")

_KNOWN_KEYS = frozenset(
    {
        "update_strategy",
        "changelog_enabled",
        "cache_enabled",
        "cache_ttl",
        "ignore",
        "groups",
        "registry_credentials",
    }
)


@dataclass
class ChartKeeperConfig:
    """Parsed and validated chartkeeper configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        update_strategy: ``patch``, ``minor``, ``major`` or ``all``.
        changelog_enabled: Look up changelogs for proposed updates.
        cache_enabled: Cache changelog lookups in memory.
        cache_ttl: Changelog cache lifetime in seconds.
        ignore: Rules excluding dependencies or versions from updates.
        groups: Named groups used to batch updates.
        registry_credentials: Authentication for private chart registries.
        github_token: GitHub token (environment only).
        gitlab_token: GitLab token (environment only).
        bitbucket_credentials: ``(username, app_password)`` (environment only).
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    update_strategy: str = DEFAULT_UPDATE_STRATEGY
    changelog_enabled: bool = DEFAULT_CHANGELOG_ENABLED
    cache_enabled: bool = DEFAULT_CACHE_ENABLED
    cache_ttl: float = DEFAULT_CACHE_TTL
    ignore: List[IgnoreRule] = field(default_factory=list)
    groups: Dict[str, DependencyGroup] = field(default_factory=dict)
    registry_credentials: List[RegistryCredential] = field(default_factory=list, repr=False)

    github_token: Optional[str] = field(default=None, repr=False)
    gitlab_token: Optional[str] = field(default=None, repr=False)
    bitbucket_credentials: Optional[Tuple[str, str]] = field(default=None, repr=False)

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the configuration for debug logging, without secrets."""
        return {
            "update_strategy": self.update_strategy,
            "changelog_enabled": self.changelog_enabled,
            "cache_enabled": self.cache_enabled,
            "cache_ttl": self.cache_ttl,
            "ignore": len(self.ignore),
            "groups": sorted(self.groups),
            "registries": [credential.registry for credential in self.registry_credentials],
            "platforms": self.configured_platforms(),
        }

    def configured_platforms(self) -> List[str]:
        platforms = []
        if self.github_token:
            platforms.append("github")
        if self.gitlab_token:
            platforms.append("gitlab")
        if self.bitbucket_credentials:
            platforms.append("bitbucket")
        return platforms


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    chartkeeper_toml = cwd / "chartkeeper.toml"
    if chartkeeper_toml.is_file():
        logger.debug("Found chartkeeper.toml: %s", chartkeeper_toml)
        return chartkeeper_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_section(pyproject_toml):
        logger.debug("Found [tool.chartkeeper] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "chartkeeper" in raw.get("tool", {})


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ChartKeeperConfig:
    """Load, validate and environment-override chartkeeper configuration.

    Args:
        config_path: Explicit path to config file; auto-discovered when
            ``None``.
        environ: Environment to read overrides and credentials from;
            ``os.environ`` by default.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid
            values (including an invalid ``CHARTKEEPER_UPDATE_STRATEGY``).
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        config = ChartKeeperConfig()
    else:
        logger.info("Loading configuration from %s", resolved)
        raw = _read_toml(resolved)

        if resolved.name == "pyproject.toml":
            section = raw.get("tool", {}).get("chartkeeper", {})
        else:
            section = raw.get("chartkeeper", {})

        config = _parse_section(section, config_path=str(resolved))
        config.source_path = resolved

    apply_environment(config, os.environ if environ is None else environ)
    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def apply_environment(config: ChartKeeperConfig, environ: Mapping[str, str]) -> ChartKeeperConfig:
    """Overlay environment variables onto *config* in place."""
    strategy = environ.get(ENV_UPDATE_STRATEGY)
    if strategy:
        config.update_strategy = _validate_strategy(
            strategy.strip().lower(), config_path=None, option=ENV_UPDATE_STRATEGY
        )

    config.github_token = environ.get(ENV_GITHUB_TOKEN) or None
    config.gitlab_token = environ.get(ENV_GITLAB_TOKEN) or None

    username = environ.get(ENV_BITBUCKET_USERNAME)
    password = environ.get(ENV_BITBUCKET_APP_PASSWORD)
    config.bitbucket_credentials = (username, password) if username and password else None

    config.registry_credentials = [
        _resolve_password(credential, environ, config.source_path)
        for credential in config.registry_credentials
    ]
    return config


def _resolve_password(
    credential: RegistryCredential,
    environ: Mapping[str, str],
    source_path: Optional[Path],
) -> RegistryCredential:
    if not credential.password_env:
        return credential

    password = environ.get(credential.password_env)
    if not password:
        raise ConfigError(
            f"Environment variable {credential.password_env} for registry "
            f"'{credential.registry}' is not set",
            config_path=str(source_path) if source_path else None,
            option=credential.password_env,
        )
    return replace(credential, password=password)


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _validate_strategy(value: Any, *, config_path: Optional[str], option: str) -> str:
    if not isinstance(value, str) or value not in UPDATE_STRATEGIES:
        raise ConfigError(
            f"{option} must be one of {', '.join(UPDATE_STRATEGIES)}, got {value!r}",
            config_path=config_path,
            option=option,
        )
    return value


def _require_bool(section: Mapping[str, Any], key: str, config_path: str) -> bool:
    val = section[key]
    if not isinstance(val, bool):
        raise ConfigError(
            f"{key} must be a boolean, got {type(val).__name__}",
            config_path=config_path,
            option=key,
        )
    return val


def _string_list(value: Any, *, option: str, config_path: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(
            f"{option} must be an array of strings",
            config_path=config_path,
            option=option,
        )
    return list(value)


def _update_types(value: Any, *, option: str, config_path: str) -> List[str]:
    types = _string_list(value, option=option, config_path=config_path)
    invalid = [item for item in types if item not in UPDATE_TYPES]
    if invalid:
        raise ConfigError(
            f"{option} contains invalid update types: {', '.join(invalid)}",
            config_path=config_path,
            option=option,
        )
    return types


def _parse_ignore(value: Any, config_path: str) -> List[IgnoreRule]:
    if not isinstance(value, list):
        raise ConfigError("ignore must be an array of tables", config_path=config_path, option="ignore")

    rules: List[IgnoreRule] = []
    for index, entry in enumerate(value):
        option = f"ignore[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{option} must be a table", config_path=config_path, option=option)

        unknown = set(entry) - {"dependency_name", "versions", "update_types"}
        if unknown:
            raise ConfigError(
                f"Unknown keys in {option}: {', '.join(sorted(unknown))}",
                config_path=config_path,
                option=option,
            )

        name = entry.get("dependency_name")
        if not isinstance(name, str) or not name:
            raise ConfigError(
                f"{option}.dependency_name must be a non-empty string",
                config_path=config_path,
                option=f"{option}.dependency_name",
            )

        rules.append(
            IgnoreRule(
                dependency_name=name,
                versions=_string_list(
                    entry.get("versions", []), option=f"{option}.versions", config_path=config_path
                ),
                update_types=_update_types(
                    entry.get("update_types", []),
                    option=f"{option}.update_types",
                    config_path=config_path,
                ),
            )
        )
    return rules


def _parse_groups(value: Any, config_path: str) -> Dict[str, DependencyGroup]:
    if not isinstance(value, dict):
        raise ConfigError("groups must be a table", config_path=config_path, option="groups")

    groups: Dict[str, DependencyGroup] = {}
    for name, entry in value.items():
        option = f"groups.{name}"
        if not isinstance(entry, dict) or "patterns" not in entry:
            raise ConfigError(
                f"{option} must be a table with a 'patterns' array",
                config_path=config_path,
                option=option,
            )
        groups[name] = DependencyGroup(
            patterns=_string_list(entry["patterns"], option=f"{option}.patterns", config_path=config_path),
            update_types=_update_types(
                entry.get("update_types", []),
                option=f"{option}.update_types",
                config_path=config_path,
            ),
        )
    return groups


def _parse_registry_credentials(value: Any, config_path: str) -> List[RegistryCredential]:
    if not isinstance(value, list):
        raise ConfigError(
            "registry_credentials must be an array of tables",
            config_path=config_path,
            option="registry_credentials",
        )

    credentials: List[RegistryCredential] = []
    for index, entry in enumerate(value):
        option = f"registry_credentials[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{option} must be a table", config_path=config_path, option=option)

        unknown = set(entry) - {"registry", "auth_type", "username", "password", "password_env"}
        if unknown:
            raise ConfigError(
                f"Unknown keys in {option}: {', '.join(sorted(unknown))}",
                config_path=config_path,
                option=option,
            )

        for key in ("registry", "auth_type", "username", "password", "password_env"):
            if key in entry and (not isinstance(entry[key], str) or not entry[key]):
                raise ConfigError(
                    f"{option}.{key} must be a non-empty string",
                    config_path=config_path,
                    option=f"{option}.{key}",
                )

        if "registry" not in entry:
            raise ConfigError(
                f"{option}.registry is required", config_path=config_path, option=f"{option}.registry"
            )

        auth_type = entry.get("auth_type", "basic")
        if auth_type not in AUTH_TYPES:
            raise ConfigError(
                f"{option}.auth_type must be one of {', '.join(AUTH_TYPES)}, got {auth_type!r}",
                config_path=config_path,
                option=f"{option}.auth_type",
            )

        if ("password" in entry) == ("password_env" in entry):
            raise ConfigError(
                f"{option} needs exactly one of password or password_env",
                config_path=config_path,
                option=option,
            )

        if auth_type == "basic" and "username" not in entry:
            raise ConfigError(
                f"{option}.username is required for basic authentication",
                config_path=config_path,
                option=f"{option}.username",
            )

        credentials.append(
            RegistryCredential(
                registry=entry["registry"],
                auth_type=auth_type,
                username=entry.get("username"),
                password=entry.get("password"),
                password_env=entry.get("password_env"),
            )
        )
    return credentials


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> ChartKeeperConfig:
    """Parse and validate the ``[chartkeeper]`` table.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    config = ChartKeeperConfig()

    unknown_top = set(section.keys()) - _KNOWN_KEYS
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    if "update_strategy" in section:
        config.update_strategy = _validate_strategy(
            section["update_strategy"], config_path=config_path, option="update_strategy"
        )

    if "changelog_enabled" in section:
        config.changelog_enabled = _require_bool(section, "changelog_enabled", config_path)

    if "cache_enabled" in section:
        config.cache_enabled = _require_bool(section, "cache_enabled", config_path)

    if "cache_ttl" in section:
        val = section["cache_ttl"]
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val < 0:
            raise ConfigError(
                f"cache_ttl must be a non-negative number, got {val!r}",
                config_path=config_path,
                option="cache_ttl",
            )
        config.cache_ttl = val

    if "ignore" in section:
        config.ignore = _parse_ignore(section["ignore"], config_path)

    if "groups" in section:
        config.groups = _parse_groups(section["groups"], config_path)

    if "registry_credentials" in section:
        config.registry_credentials = _parse_registry_credentials(
            section["registry_credentials"], config_path
        )

    return config
