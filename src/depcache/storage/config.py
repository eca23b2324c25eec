"""
depcache configuration.

Design goals:
- Strong typing
- Strict validation at load time (aliases, backend names, backend options)
- Schema versioning
- Clear separation between (de)serialization and domain model
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

# ================================
# Exceptions
# ================================


class ConfigError(Exception):
    """Base configuration error."""


class ValidationError(ConfigError):
    """Configuration validation failure."""


class NotFoundError(ConfigError):
    """Configuration file does not exist."""


class SchemaError(ConfigError):
    """Invalid or unsupported schema version."""


ALIAS_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{1,64}$")

DEFAULT_CONFIG_NAME = ".depcache.yaml"


# ================================
# Domain Model
# ================================


@dataclass(frozen=True)
class BackendConfig:
    """
    One configured backend.

    `backend` is a `backends.base.Backend` instance; `options` have
    already been normalized by its `validate_options`.
    """

    alias: str
    backend: Any
    options: Dict[str, Any] = field(default_factory=dict)
    push: bool = False
    push_may_fail: bool = False

    def __post_init__(self):
        if not self.alias or not ALIAS_PATTERN.match(self.alias):
            raise ValidationError(
                f"Invalid backend alias '{self.alias}'. "
                "Must match [a-zA-Z0-9_.-] and be <= 64 characters."
            )


@dataclass(frozen=True)
class DepcacheConfig:
    """
    Immutable, validated configuration.

    Backend order is pull priority.
    """

    backends: Tuple[BackendConfig, ...]
    fallback_to_npm: bool = True
    use_git_history: Optional[int] = None
    package_hash_suffix: Optional[str] = None
    clear_shared_cache: bool = False
    cache_root: Optional[Path] = None

    def __post_init__(self):
        object.__setattr__(self, "backends", tuple(self.backends))
        self._validate()

    def _validate(self) -> None:
        if not self.backends:
            raise ValidationError("At least one backend must be configured.")

        seen = set()
        for config in self.backends:
            if config.alias in seen:
                raise ValidationError(f"Duplicate backend alias '{config.alias}'.")
            seen.add(config.alias)

        if self.use_git_history is not None and self.use_git_history < 1:
            raise ValidationError("use_git_history must be a positive depth.")

    def get(self, alias: str) -> BackendConfig:
        for config in self.backends:
            if config.alias == alias:
                return config
        raise NotFoundError(f"Backend '{alias}' is not configured.")


# ================================
# Serialization Layer
# ================================


class ConfigSchema:
    """
    Responsible ONLY for deserialization.
    """

    VERSION = 1

    @classmethod
    def load(cls, raw: dict) -> DepcacheConfig:
        if not raw:
            raise ValidationError("Configuration is empty.")

        if not isinstance(raw, dict):
            raise ValidationError("Configuration must be a mapping.")

        version = raw.get("version")
        if version != cls.VERSION:
            raise SchemaError(
                f"Unsupported config version: {version}. "
                f"Expected version {cls.VERSION}."
            )

        backends = tuple(
            cls._load_backend(index, data)
            for index, data in enumerate(raw.get("backends") or [])
        )

        cache_root = raw.get("cache_root")

        return DepcacheConfig(
            backends=backends,
            fallback_to_npm=bool(raw.get("fallback_to_npm", True)),
            use_git_history=raw.get("use_git_history"),
            package_hash_suffix=raw.get("package_hash_suffix"),
            clear_shared_cache=bool(raw.get("clear_shared_cache", False)),
            cache_root=Path(cache_root).expanduser() if cache_root else None,
        )

    @staticmethod
    def _load_backend(index: int, data: Dict[str, Any]) -> BackendConfig:
        from ..backends import BackendRegistry

        if not isinstance(data, dict):
            raise ValidationError(f"Backend #{index} must be a mapping.")

        alias = data.get("alias")
        if not alias:
            raise ValidationError(f"Backend #{index} has no alias.")

        try:
            backend = BackendRegistry.get_backend(data.get("backend"))
            options = backend.validate_options(dict(data.get("options") or {}))

            return BackendConfig(
                alias=alias,
                backend=backend,
                options=options,
                push=bool(data.get("push", False)),
                push_may_fail=bool(data.get("push_may_fail", False)),
            )
        except (ValueError, ConfigError) as e:
            raise ValidationError(
                f"Invalid configuration for backend '{alias}': {e}"
            ) from e


# ================================
# Loading
# ================================


def default_config_path() -> Path:
    return Path.cwd() / DEFAULT_CONFIG_NAME


def load_config(config_path: Optional[Path] = None) -> DepcacheConfig:
    config_path = Path(config_path) if config_path else default_config_path()

    if not config_path.exists():
        raise NotFoundError(f"Configuration file not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError("Malformed YAML configuration.") from e
    except OSError as e:
        raise ConfigError("Failed to read configuration file.") from e

    return ConfigSchema.load(raw)
