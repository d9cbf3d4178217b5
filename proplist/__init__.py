"""Proplist: property listing domain core."""

__version__ = "0.1.0"
