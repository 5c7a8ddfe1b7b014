"""Utility modules for resalloc-kubernetes."""

from .logging import setup_logging
from .selectors import parse_pairs, format_pairs
from .error_handlers import handle_cli_exception

__all__ = [
    "setup_logging",
    "parse_pairs",
    "format_pairs",
    "handle_cli_exception",
]
