from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import numpy as np


logger = logging.getLogger(__name__)


class ExportError(RuntimeError):
    """The video processor failed to produce an output file."""


@dataclass(frozen=True)
class ClipSpec:
    path: str
    trim_start: float
    trim_end: float


class VideoProcessor(Protocol):
    """Opaque native encoder/merger. Receives trimmed clips, returns the output path."""

    def process(self, clips: Sequence[ClipSpec], output_path: str) -> str: ...


def clip_spec_to_dict(clip: ClipSpec) -> dict[str, Any]:
    return {
        "path": clip.path,
        "trimStart": float(clip.trim_start),
        "trimEnd": float(clip.trim_end),
    }


def _validate_clips(clips: Sequence[ClipSpec]) -> None:
    if len(clips) == 0:
        raise ValueError("clips cannot be empty")
    for idx, clip in enumerate(clips):
        if not str(clip.path).strip():
            raise ValueError(f"clip {idx} has an empty path")
        start = float(clip.trim_start)
        end = float(clip.trim_end)
        if not np.isfinite(start) or not np.isfinite(end):
            raise ValueError(f"clip {idx} has a non-finite trim range")
        if start < 0.0 or end <= start:
            raise ValueError(f"clip {idx} must satisfy 0 <= trim_start < trim_end")


def export_clips(processor: VideoProcessor, clips: Sequence[ClipSpec], output_path: str | Path) -> str:
    """Hand a validated clip list to `processor` and return the produced file path."""

    _validate_clips(clips)
    out = str(output_path)
    if not out.strip():
        raise ValueError("output_path cannot be empty")

    logger.info("Exporting %d clip(s) to %s", len(clips), out)
    try:
        result = processor.process(list(clips), out)
    except Exception as ex:
        raise ExportError(f"Video processing failed: {ex}") from ex
    if not result:
        raise ExportError("Video processor returned no output path")
    return str(result)
