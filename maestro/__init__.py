"""Maestro: terminal dashboard for isolated Claude development containers."""

__version__ = "0.4.0"
