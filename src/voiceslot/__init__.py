"""Voice slot scheduler - admission control for outbound ElevenLabs calls."""

__version__ = "0.1.0"

__all__ = ["__version__"]
