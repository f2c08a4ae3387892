"""Configuration resolver with layered priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (DIRINDEX_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from dirindex.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

ENV_PREFIX = "DIRINDEX_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy."""

    level_name: str  # quiet | normal | verbose | debug
    emit_info: bool
    emit_debug: bool
    source: str


class ConfigResolver:
    """Resolve configuration with strict priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'cache': {'ttl_seconds': 5}},
            user_config_path=Path('~/.config/dirindex/config.yaml'),
        )

        ttl, source = resolver.resolve('cache.ttl_seconds')
        # ttl = 5, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority). Nested dicts or
                dot-notation keys are both accepted.
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/dirindex/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/dirindex/config.yaml")
        self.defaults = defaults if defaults is not None else default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (dot notation: 'cache.ttl_seconds')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        lookups = (
            ("cli", self._from_cli),
            ("env", self._from_env),
            ("user_config", lambda k: _get_nested(self._get_user_config(), k)),
            ("system_config", lambda k: _get_nested(self._get_system_config(), k)),
            ("default", lambda k: _get_nested(self.defaults, k)),
        )
        for source, lookup in lookups:
            value = lookup(key)
            if value is not None:
                return value, source

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_str(self, key: str) -> str:
        value, _src = self.resolve(key)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        if not value.strip():
            raise ConfigError(f"Config key '{key}' must not be empty")
        return value

    def resolve_bool(self, key: str) -> bool:
        """Resolve a bool, accepting the usual string spellings from env vars."""
        value, src = self.resolve(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return bool(value)
        norm = str(value).strip().lower()
        if norm in _TRUE_VALUES:
            return True
        if norm in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r} (from {src})")

    def resolve_int(self, key: str, *, minimum: int | None = None) -> int:
        value, src = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int, got bool (from {src})")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(
                f"Config key '{key}' must be an int, got {value!r} (from {src})"
            ) from None
        if minimum is not None and number < minimum:
            raise ConfigError(f"Config key '{key}' must be >= {minimum}, got {number}")
        return number

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Returns DEFAULT_LOGGING_LEVEL when no source provides the key.

        Raises:
            ConfigError: If the resolved value is not an allowed level.
        """
        return self._resolve_logging_level_and_source()[0]

    def resolve_logging_policy(self) -> LoggingPolicy:
        level_name, source = self._resolve_logging_level_and_source()
        return LoggingPolicy(
            level_name=level_name,
            emit_info=level_name != "quiet",
            emit_debug=level_name in {"verbose", "debug"},
            source=source,
        )

    def _resolve_logging_level_and_source(self) -> tuple[str, str]:
        key = "logging.level"
        try:
            value, source = self.resolve(key)
        except ConfigError:
            return DEFAULT_LOGGING_LEVEL, "default"

        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm, source

    def _from_cli(self, key: str) -> Any | None:
        if key in self.cli_args:
            return self.cli_args[key]
        return _get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Environment variable format: DIRINDEX_CACHE_TTL_SECONDS."""
        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = _load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = _load_yaml(self.system_config_path)
        return self._system_config


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _get_nested(data: dict[str, Any], key: str) -> Any | None:
    """Get nested value using dot notation.

    Example:
        _get_nested({'cache': {'enabled': True}}, 'cache.enabled') -> True
    """
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def default_config() -> dict[str, Any]:
    """Default configuration."""
    cache_dir = Path(tempfile.gettempdir()) / "dirindex-cache"
    return {
        "root_dir": "./files",
        "listing": {
            "hide_dotfiles": True,
        },
        "cache": {
            "enabled": True,
            "ttl_seconds": 30,
            "max_payload_bytes": 50000,
            "dir": str(cache_dir),
        },
        "logging": {
            "level": DEFAULT_LOGGING_LEVEL,
            "color": True,
        },
        "diagnostics": {
            "enabled": False,
            "path": str(cache_dir / "diagnostics" / "diagnostics.jsonl"),
        },
        "web": {
            "host": "127.0.0.1",
            "port": 8080,
        },
    }
