"""A log-structured merge-tree key-value store with a JSON-over-TCP server, client and tools."""

__version__ = "0.1.0"