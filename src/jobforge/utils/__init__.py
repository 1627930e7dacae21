"""Utility functions for jobforge.

Example:
    >>> from jobforge.utils import setup_logging
    >>> setup_logging(verbosity=1)
"""

from jobforge.utils.logging import Timer, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "Timer",
]
