from __future__ import annotations

from .storage import KeyframeStore, TrimInfo

__all__ = [
    "KeyframeStore",
    "TrimInfo",
]
