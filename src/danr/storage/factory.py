"""
Factory for creating sample store instances.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

from ..models.config import StorageConfig
from .base import SampleStore
from .file_storage import FileSampleStore
from .memory_storage import MemorySampleStore

logger = logging.getLogger(__name__)


def create_storage(
    format_type: Literal["file", "memory"] = "file",
    data_dir: Optional[Path] = None,
    compress_level: int = 9,
) -> SampleStore:
    """
    Create a sample store based on the specified format type.

    Args:
        format_type: Storage backend ('file' or 'memory')
        data_dir: Directory for the file backend
        compress_level: gzip compression level for sample files

    Returns:
        SampleStore instance

    Raises:
        ValueError: If an unsupported format type is specified, or the file
            backend is requested without a data directory
    """
    if format_type == "file":
        if data_dir is None:
            raise ValueError("File storage requires a data directory")
        logger.debug(f"Creating FileSampleStore in {data_dir} with compress level {compress_level}")
        return FileSampleStore(data_dir, compress_level=compress_level)
    elif format_type == "memory":
        logger.debug("Creating MemorySampleStore")
        return MemorySampleStore(compress_level=compress_level)
    else:
        raise ValueError(f"Unsupported storage format: {format_type}")


def create_storage_from_config(storage_config: StorageConfig) -> SampleStore:
    return create_storage(
        storage_config.format,
        data_dir=storage_config.data_dir,
        compress_level=storage_config.compress_level,
    )
