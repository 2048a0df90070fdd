"""Dependency discovery and normalization for license auditing."""

__version__ = "0.1.0"
