"""FastAPI application exposing adventure library endpoints."""

from .app import create_app
from .settings import AdventureApiSettings

__all__ = ["create_app", "AdventureApiSettings"]
