"""
Command-line interface for the danr package.

This module provides the ``danr`` console entry point.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
