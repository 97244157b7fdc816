"""Generate Protocol Buffer definitions from Go source code."""

__version__ = "0.1.0"