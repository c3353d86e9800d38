"""Product cache and trade enrichment pipeline."""

__version__ = "0.1.0"
