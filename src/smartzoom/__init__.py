from __future__ import annotations

from .core.interpolation import MarkerSample, ZoomTransform
from .core.keyframes import MarkerType, TrackingKeyframe, ZoomKeyframe, ZoomTrack
from .core.mapping import FrameLayout, FrameTransform, NaturalSize
from .core.query import frame_marker_at, frame_zoom_at, marker_at, zoom_transform_at
from .core.resample import densify
from .core.spline import sample_spline
from .io.storage import KeyframeStore, TrimInfo
from .processing import ClipSpec, ExportError, export_clips
from .runtime.server import PreviewServer, run
from .sdk.client import PreviewClient

__all__ = [
    "run",
    "PreviewServer",
    "PreviewClient",
    "MarkerType",
    "ZoomKeyframe",
    "TrackingKeyframe",
    "ZoomTrack",
    "ZoomTransform",
    "MarkerSample",
    "NaturalSize",
    "FrameLayout",
    "FrameTransform",
    "densify",
    "sample_spline",
    "zoom_transform_at",
    "marker_at",
    "frame_zoom_at",
    "frame_marker_at",
    "KeyframeStore",
    "TrimInfo",
    "ClipSpec",
    "ExportError",
    "export_clips",
]
