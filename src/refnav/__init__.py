"""Definition/reference navigation for indentation-based API description files."""

__all__ = [
    "analysis",
    "buffer",
    "protocol",
    "runtime",
    "structure",
]

__version__ = "0.1.0"
