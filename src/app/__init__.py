"""Shift swap approval backend."""

__version__ = "0.1.0"
