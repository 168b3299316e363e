from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings, load_settings
from ..core.sessions import REGISTRY, InMemorySessionRegistry
from ..io.storage import KeyframeStore
from .interpolate import mount_interpolate_api
from .sessions import mount_sessions_api


def create_api_app(
    registry: InMemorySessionRegistry | None = None,
    *,
    settings: Settings | None = None,
    store: KeyframeStore | None = None,
) -> FastAPI:
    """Create the preview API.

    `registry` defaults to the process-wide `REGISTRY`; tests pass their own so
    sessions do not leak between them. `store` defaults to a `KeyframeStore`
    rooted at `settings.data_dir`.
    """

    reg = REGISTRY if registry is None else registry
    cfg = load_settings() if settings is None else settings
    kf_store = KeyframeStore(cfg.data_dir) if store is None else store

    app = FastAPI(title="smartzoom", version="0.1.0")

    # Dev: allow the editor UI served from Vite or Metro to call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8081",
            "http://127.0.0.1:8081",
        ],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/events")
    def events() -> dict:
        return {"globalRevision": reg.global_revision()}

    @app.post("/api/reset")
    def reset() -> dict:
        reg.reset()
        return {"ok": True, "globalRevision": reg.global_revision()}

    mount_sessions_api(app, reg, store=kf_store, settings=cfg)
    mount_interpolate_api(app, settings=cfg)

    return app


__all__ = ["create_api_app"]
