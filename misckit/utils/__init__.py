"""
Utility functions and helpers.

This module provides shared helpers used across the package, currently the
structured logging setup.
"""

from .logger import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
