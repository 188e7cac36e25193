"""CLI command implementations."""

from .server import serve
from .status import show_config, stats

__all__ = ["serve", "show_config", "stats"]
