"""Resume-driven job suggestions: extract, infer, search, rank."""

__version__ = "0.1.0"
