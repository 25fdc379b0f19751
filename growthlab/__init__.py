"""Growth Lab - experiment lifecycle service."""

__version__ = "1.0.0"
