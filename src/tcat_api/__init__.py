"""TCAT Data API: cached transit feeds served over HTTP."""

__version__ = "0.1.0"
