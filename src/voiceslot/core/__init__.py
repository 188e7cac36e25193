"""Cross-cutting infrastructure (logging)."""

from voiceslot.core.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
