"""Bounded tool-using agent loop for project automation."""

__version__ = "0.1.0"
