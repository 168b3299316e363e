from __future__ import annotations

from .client import PreviewClient, PreviewRequestError

__all__ = ["PreviewClient", "PreviewRequestError"]
