"""Utilities for netmigo."""

from netmigo.utils.console import ColorfulFormatter, configure_logging
from netmigo.utils.validation import validate_remote_path

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "validate_remote_path",
]
