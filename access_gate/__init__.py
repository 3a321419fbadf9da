"""Access gate: verified, allow-listed redirect service."""

__version__ = "1.0.0"
