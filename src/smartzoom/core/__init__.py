from __future__ import annotations

from .interpolation import (
    IDENTITY_TRANSFORM,
    MarkerSample,
    ZoomTransform,
    bracket,
    ease_in_out_quad,
    interpolate_linear,
    interpolate_marker,
    lerp,
    segment_fraction,
)
from .keyframes import (
    DEFAULT_FPS,
    MAX_SCALE,
    MIN_SCALE,
    MarkerType,
    TrackingKeyframe,
    ZoomKeyframe,
    ZoomTrack,
    default_tracking_keyframes,
    default_zoom_keyframes,
    finalize_keyframes,
    normalize_tracking_keyframe,
    normalize_tracking_keyframes,
    normalize_zoom_keyframe,
    normalize_zoom_keyframes,
    segment_index,
)
from .mapping import (
    OFF_CANVAS,
    FrameLayout,
    FrameTransform,
    NaturalSize,
    fit_scale,
    frame_center_in_natural,
    frame_layout_for_container,
    map_frame_delta_to_natural,
    map_natural_to_frame,
    map_zoom_to_frame,
)
from .query import frame_marker_at, frame_zoom_at, marker_at, zoom_transform_at
from .resample import densify
from .sessions import REGISTRY, EditSession, InMemorySessionRegistry
from .spline import catmull_rom, sample_spline

__all__ = [
    "DEFAULT_FPS",
    "MIN_SCALE",
    "MAX_SCALE",
    "MarkerType",
    "ZoomKeyframe",
    "TrackingKeyframe",
    "ZoomTrack",
    "normalize_zoom_keyframe",
    "normalize_zoom_keyframes",
    "normalize_tracking_keyframe",
    "normalize_tracking_keyframes",
    "default_zoom_keyframes",
    "default_tracking_keyframes",
    "finalize_keyframes",
    "segment_index",
    "OFF_CANVAS",
    "NaturalSize",
    "FrameLayout",
    "FrameTransform",
    "fit_scale",
    "map_natural_to_frame",
    "map_frame_delta_to_natural",
    "map_zoom_to_frame",
    "frame_layout_for_container",
    "frame_center_in_natural",
    "IDENTITY_TRANSFORM",
    "ZoomTransform",
    "MarkerSample",
    "ease_in_out_quad",
    "bracket",
    "segment_fraction",
    "lerp",
    "interpolate_linear",
    "interpolate_marker",
    "catmull_rom",
    "sample_spline",
    "densify",
    "zoom_transform_at",
    "marker_at",
    "frame_zoom_at",
    "frame_marker_at",
    "EditSession",
    "InMemorySessionRegistry",
    "REGISTRY",
]
