"""
Configuration validation utilities.

Each function turns one raw TOML section into its validated dataclass.
"""

import logging
from typing import Any, Dict

from ..models.config import AppConfig, ExportConfig, GroupingConfig, QueryConfig, StorageConfig
from ..validation import (
    ValidationError,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)


def validate_storage_config(storage_data: Dict[str, Any]) -> StorageConfig:
    """
    Validate and create a StorageConfig from the ``[storage]`` section.

    Raises:
        ValidationError: If validation fails
    """
    try:
        return StorageConfig.from_dict(storage_data)
    except ValueError as e:
        raise ValidationError(f"Invalid storage configuration: {e}", field_name="storage")


def validate_grouping_config(grouping_data: Dict[str, Any]) -> GroupingConfig:
    """
    Validate and create a GroupingConfig from the ``[grouping]`` section.

    Raises:
        ValidationError: If validation fails
    """
    similarity_threshold = validate_positive_float(
        grouping_data.get("similarity_threshold", 70),
        min_value=0.0,
        max_value=100.0,
        field_name="grouping.similarity_threshold",
    )
    pattern_depth = validate_positive_integer(
        grouping_data.get("pattern_depth", 5),
        min_value=1,
        max_value=50,
        field_name="grouping.pattern_depth",
    )
    return GroupingConfig(
        similarity_threshold=similarity_threshold,
        pattern_depth=pattern_depth,
    )


def validate_export_config(export_data: Dict[str, Any]) -> ExportConfig:
    """
    Validate and create an ExportConfig from the ``[export]`` section.

    Raises:
        ValidationError: If validation fails
    """
    gap_multiplier = validate_positive_float(
        export_data.get("gap_multiplier", 2.5),
        min_value=1.0,  # below one interval every sample would split
        max_value=100.0,
        field_name="export.gap_multiplier",
    )
    process_name = validate_non_empty_string(
        export_data.get("process_name", "DANR Profiled App"),
        field_name="export.process_name",
    )
    pid = validate_positive_integer(
        export_data.get("pid", 1),
        min_value=0,
        field_name="export.pid",
    )
    return ExportConfig(gap_multiplier=gap_multiplier, process_name=process_name, pid=pid)


def validate_query_config(query_data: Dict[str, Any]) -> QueryConfig:
    """
    Validate and create a QueryConfig from the ``[query]`` section.

    Raises:
        ValidationError: If validation fails
    """
    top_limit = validate_positive_integer(
        query_data.get("default_top_functions_limit", 20),
        min_value=1,
        field_name="query.default_top_functions_limit",
    )
    native_limit = validate_positive_integer(
        query_data.get("default_native_functions_limit", 100),
        min_value=1,
        field_name="query.default_native_functions_limit",
    )
    return QueryConfig(
        default_top_functions_limit=top_limit,
        default_native_functions_limit=native_limit,
    )


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """Validate every section of a parsed config.toml."""
    app_config = AppConfig(
        storage=validate_storage_config(config_data.get("storage", {})),
        grouping=validate_grouping_config(config_data.get("grouping", {})),
        export=validate_export_config(config_data.get("export", {})),
        query=validate_query_config(config_data.get("query", {})),
    )
    logger.debug(f"Validated configuration: storage={app_config.storage.to_dict()}")
    return app_config
