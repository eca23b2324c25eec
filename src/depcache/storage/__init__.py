"""
Configuration, scratch directories and bundle archives for depcache.
"""

from .config import (
    BackendConfig,
    DepcacheConfig,
    ConfigSchema,
    load_config,
    ConfigError,
    ValidationError,
    NotFoundError,
    SchemaError,
)
from .cache_dir import CacheDirectoryManager
from .archive import create_bundle, extract_bundle, bundle_name

__all__ = [
    # Config
    "BackendConfig",
    "DepcacheConfig",
    "ConfigSchema",
    "load_config",

    # Directories / archives
    "CacheDirectoryManager",
    "create_bundle",
    "extract_bundle",
    "bundle_name",

    # Exceptions
    "ConfigError",
    "ValidationError",
    "NotFoundError",
    "SchemaError",
]
