"""
Configuration management for the danr package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from .loader import load_main_config, load_toml_file
from ..models.config import StorageConfig
from .validators import (
    validate_app_config,
    validate_export_config,
    validate_grouping_config,
    validate_query_config,
    validate_storage_config,
)

__all__ = [
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "load_toml_file",
    "load_main_config",
    "StorageConfig",
    "validate_app_config",
    "validate_export_config",
    "validate_grouping_config",
    "validate_query_config",
    "validate_storage_config",
]
