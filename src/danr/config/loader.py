"""
Reading conf/config.toml.

The file holds four tables: ``[storage]`` (sample directory, backend and
gzip level), ``[grouping]`` (ANR similarity threshold and pattern depth),
``[export]`` (Perfetto gap multiplier, pid and process name) and ``[query]``
(default limits for top and native functions). This module only parses the
file; :mod:`danr.config.validators` checks the values.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)

CONFIG_SECTIONS = ("storage", "grouping", "export", "query")


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse a TOML file into a dictionary.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.info(f"Reading {description} {file_path}")
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load the danr configuration file.

    Tables other than the known sections are ignored with a warning; missing
    sections fall back to their defaults later on.
    """
    data = load_toml_file(config_path, "danr configuration")
    unknown = sorted(set(data) - set(CONFIG_SECTIONS))
    if unknown:
        logger.warning(f"Ignoring unknown config sections in {config_path}: {', '.join(unknown)}")
    return data
