"""Explain and fix shell commands that could not be found."""

__version__ = "0.1.0"
