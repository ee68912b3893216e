"""Stencil utility modules.

- logging: CLI log formatting with human/verbose/JSON modes
"""

from stencil.utils.logging import configure_from_cli, get_logger, setup_logging

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
]
