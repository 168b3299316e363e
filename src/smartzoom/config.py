from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .core.keyframes import DEFAULT_FPS
from .core.mapping import DEFAULT_ASPECT_RATIO


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from `SMARTZOOM_*` environment variables."""

    url: str = ""
    log_level: str = "INFO"
    data_dir: Path = Path.home() / ".smartzoom"
    dense_fps: float = float(DEFAULT_FPS)
    aspect_ratio: float = DEFAULT_ASPECT_RATIO


def _positive_float(raw: str | None, fallback: float) -> float:
    if raw is None or not raw.strip():
        return fallback
    txt = raw.strip()
    try:
        if "/" in txt:
            num, den = txt.split("/", 1)
            value = float(num) / float(den)
        else:
            value = float(txt)
    except (ValueError, ZeroDivisionError):
        return fallback
    if not np.isfinite(value) or value <= 0.0:
        return fallback
    return value


def load_settings() -> Settings:
    defaults = Settings()
    data_dir = os.getenv("SMARTZOOM_DATA_DIR", "").strip()
    return Settings(
        url=os.getenv("SMARTZOOM_URL", "").strip(),
        log_level=os.getenv("SMARTZOOM_LOG_LEVEL", defaults.log_level).strip().upper() or defaults.log_level,
        data_dir=Path(data_dir).expanduser() if data_dir else defaults.data_dir,
        dense_fps=_positive_float(os.getenv("SMARTZOOM_DENSE_FPS"), defaults.dense_fps),
        aspect_ratio=_positive_float(os.getenv("SMARTZOOM_ASPECT_RATIO"), defaults.aspect_ratio),
    )
