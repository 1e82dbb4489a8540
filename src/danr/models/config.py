"""
Configuration data models.

This module contains the configuration structures loaded from
``conf/config.toml``: storage location, grouping thresholds, export tuning
and query defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal

# Overrides [storage].data_dir, mirroring the deployment volume setting.
DATA_DIR_ENV_VAR = "DANR_PROFILE_DATA_DIR"


@dataclass
class StorageConfig:
    """
    Configuration model for sample storage settings.

    Attributes:
        data_dir: Directory holding ``<session>.samples.gz`` and
            ``<session>.perfetto-trace`` files
        format: Storage backend type
            - 'file': gzip-compressed JSON sample files on local disk
            - 'memory': in-process store, used by tests and tooling
        compress_level: gzip compression level (1-9) for sample files
    """

    data_dir: Path
    format: Literal["file", "memory"] = "file"
    compress_level: int = 9

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StorageConfig":
        """
        Create a StorageConfig instance from a dictionary.

        Raises:
            ValueError: If invalid configuration values are provided
        """
        data_dir = os.environ.get(DATA_DIR_ENV_VAR) or config_dict.get("data_dir", "/data/profiles")
        format_type = config_dict.get("format", "file")
        compress_level = config_dict.get("compress_level", 9)

        if format_type not in ("file", "memory"):
            raise ValueError(f"Unsupported storage format: {format_type}")

        if not isinstance(compress_level, int) or isinstance(compress_level, bool) \
                or not 1 <= compress_level <= 9:
            raise ValueError(f"Unsupported compression level: {compress_level}")

        return cls(
            data_dir=Path(data_dir),
            format=format_type,
            compress_level=compress_level,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "format": self.format,
            "compress_level": self.compress_level,
        }


@dataclass
class GroupingConfig:
    """
    Settings for the ANR grouping engine, loaded from ``[grouping]``.
    """

    # Jaccard similarity (percent) at or above which two ANRs share a group.
    similarity_threshold: float = 70.0
    # Number of leading frames used for a group's human readable label.
    pattern_depth: int = 5


@dataclass
class ExportConfig:
    """
    Settings for the Chrome Trace / Perfetto exporter, loaded from ``[export]``.
    """

    # A span is closed when the same frame is unseen for longer than
    # gap_multiplier * sampling interval.
    gap_multiplier: float = 2.5
    # Process label shown in the Perfetto UI.
    process_name: str = "DANR Profiled App"
    # Fixed pid for all emitted events; sessions cover a single process.
    pid: int = 1


@dataclass
class QueryConfig:
    """
    Defaults for query parameters, loaded from ``[query]``.
    """

    default_top_functions_limit: int = 20
    default_native_functions_limit: int = 100


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    storage: StorageConfig = field(default_factory=lambda: StorageConfig(data_dir=Path("/data/profiles")))
    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
