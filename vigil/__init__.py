"""Vigil IR — in-memory incident response tracking service."""

__version__ = "1.0.0"
