"""Time-limited short links with click analytics."""

__version__ = "1.0.0"
