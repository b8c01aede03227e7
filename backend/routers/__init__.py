"""Routers package."""

from .validate import router as validate_router

__all__ = [
    "validate_router",
]
