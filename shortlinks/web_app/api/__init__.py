"""JSON API for the short link registry."""

from .routes import router as api_router

__all__ = ["api_router"]
