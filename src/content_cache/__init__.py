"""Offline-first content cache for GraphQL content sources."""

__version__ = "0.3.0"
