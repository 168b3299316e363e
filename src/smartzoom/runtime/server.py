from __future__ import annotations

import contextlib
import logging
import socket
import threading
import time
from dataclasses import dataclass

import httpx
import uvicorn

from ..config import load_settings
from ..core.sessions import REGISTRY, InMemorySessionRegistry
from ..logging_setup import setup_logging
from ..sdk.client import PreviewClient
from .app import create_app


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewServer:
    host: str
    port: int
    url: str
    registry: InMemorySessionRegistry = REGISTRY

    def client(self) -> PreviewClient:
        """HTTP client bound to this server."""
        return PreviewClient(self.url.rstrip("/"))


def _find_free_port(host: str) -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind((host, 0))
        return int(s.getsockname()[1])


def _normalize_base_url(url: str) -> str:
    url = url.strip()
    if not url:
        return ""
    # Allow passing just host:port.
    if "://" not in url:
        url = "http://" + url
    return url.rstrip("/")


def _is_server_alive(base_url: str, *, timeout_s: float = 0.2) -> bool:
    """Probe `/healthz`; any transport error counts as not alive."""

    try:
        with httpx.Client(base_url=base_url, timeout=timeout_s) as client:
            r = client.get("/healthz")
            if r.status_code != 200:
                return False
            return bool(r.json().get("ok"))
    except (httpx.HTTPError, ValueError):
        return False


def run(
    *,
    host: str = "127.0.0.1",
    port: int = 0,
    log_level: str | None = None,
    access_log: bool = False,
    new_server: bool = False,
    connect_timeout_s: float = 0.2,
) -> PreviewServer | PreviewClient:
    """Start the preview API with a single Python call.

    Behavior:
    - If SMARTZOOM_URL is set, we *attach* to that existing server (client mode)
      unless `new_server=True`.
    - Otherwise, if `port != 0` and a server is already reachable at
      http://{host}:{port}, we attach to it unless `new_server=True`.
    - Otherwise we start uvicorn on a daemon thread and return a `PreviewServer`.

    `port=0` means "pick a free port", so there's nothing to attach to. The
    per-request access log is off by default because editors poll `/api/events`.
    """

    settings = load_settings()
    level = (log_level or settings.log_level).upper()
    setup_logging(level)

    env_url = _normalize_base_url(settings.url)

    if env_url and not new_server:
        if _is_server_alive(env_url, timeout_s=connect_timeout_s):
            logger.info("Attaching to preview server at %s", env_url)
            return PreviewClient(env_url)
        logger.warning("SMARTZOOM_URL=%s is not reachable, starting a local server", env_url)

    if port != 0 and not new_server:
        default_url = _normalize_base_url(f"http://{host}:{port}")
        if _is_server_alive(default_url, timeout_s=connect_timeout_s):
            logger.info("Attaching to preview server at %s", default_url)
            return PreviewClient(default_url)

    if port == 0:
        port = _find_free_port(host)

    app = create_app(REGISTRY, settings=settings)

    config = uvicorn.Config(app, host=host, port=port, log_level=level.lower(), access_log=access_log)
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    # Give it a moment so a subsequent client probe doesn't race with startup.
    time.sleep(0.05)

    url = f"http://{host}:{port}/"
    logger.info("Preview server listening on %s", url)
    return PreviewServer(host=host, port=port, url=url, registry=REGISTRY)
