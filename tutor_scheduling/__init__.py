"""Tutor availability and booking scheduling core."""

__version__ = "1.0.0"
