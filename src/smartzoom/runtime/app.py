from __future__ import annotations

from fastapi import FastAPI

from ..api import create_api_app
from ..config import Settings
from ..core.sessions import InMemorySessionRegistry


def create_app(
    registry: InMemorySessionRegistry | None = None,
    *,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the full preview app."""

    return create_api_app(registry, settings=settings)


# Convenience for uvicorn: `uvicorn smartzoom.runtime.app:app`
app = create_app()
