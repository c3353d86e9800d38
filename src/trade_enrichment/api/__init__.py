"""aiohttp application exposing the enrichment pipeline."""

from .routes import create_app

__all__ = ["create_app"]
