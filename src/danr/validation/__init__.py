"""
Validation and error handling for the danr package.

This module provides input validation and the error taxonomy shared by the
profiling pipeline and the ANR grouping engine.
"""

from .exceptions import (
    ErrorSeverity,
    MissingTraceDataError,
    NotFoundError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)
from .validators import (
    validate_enum_choice,
    validate_non_empty_string,
    validate_path_exists,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    "ErrorSeverity",
    "MissingTraceDataError",
    "NotFoundError",
    "ValidationError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_file_error",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_path_exists",
    "validate_positive_float",
    "validate_positive_integer",
]
