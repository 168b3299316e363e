from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from .interpolation import (
    IDENTITY_TRANSFORM,
    MarkerSample,
    ZoomTransform,
    interpolate_linear,
    interpolate_marker,
)
from .keyframes import MarkerType, TrackingKeyframe, ZoomKeyframe, ZoomTrack, clamp_scale
from .mapping import FrameLayout, FrameTransform, NaturalSize, map_natural_to_frame, map_zoom_to_frame
from .spline import sample_spline


QueryMode = Literal["preview", "edit"]

# Where a marker sits when there is nothing to interpolate.
DEFAULT_MARKER_ANCHOR: tuple[float, float] = (100.0, 300.0)


def _active(keys: Sequence[ZoomKeyframe] | Sequence[TrackingKeyframe], index: int):
    return keys[max(0, min(len(keys) - 1, int(index)))]


def zoom_transform_at(
    track: ZoomTrack | Sequence[ZoomKeyframe],
    t: float,
    *,
    mode: QueryMode = "preview",
    active_index: int = 0,
) -> ZoomTransform:
    """Natural-space pan/zoom for playback time `t`.

    Preview mode follows the spline through sparse keyframes, or a plain bracket
    lookup through an already-eased dense track. Edit mode shows the raw value of
    the keyframe being edited.
    """

    if isinstance(track, ZoomTrack):
        keys: Sequence[ZoomKeyframe] = track.keyframes
        kind = track.kind
    else:
        keys = track
        kind = "sparse"

    if len(keys) < 2:
        return IDENTITY_TRANSFORM

    if mode == "edit":
        k = _active(keys, active_index)
        return ZoomTransform(x=float(k.x), y=float(k.y), scale=clamp_scale(k.scale))
    if mode != "preview":
        raise ValueError(f"Unsupported query mode: {mode!r}")

    if kind == "dense":
        return interpolate_linear(keys, t)
    return sample_spline(keys, t)


def marker_at(
    keyframes: Sequence[TrackingKeyframe],
    t: float,
    *,
    interpolate: bool = True,
    eased: bool = False,
    active_index: int = 0,
    default_anchor: tuple[float, float] = DEFAULT_MARKER_ANCHOR,
) -> MarkerSample:
    fallback = MarkerSample(x=float(default_anchor[0]), y=float(default_anchor[1]), marker_type=MarkerType.CIRCLE)
    if len(keyframes) < 2:
        return fallback

    if not interpolate:
        k = _active(keyframes, active_index)
        return MarkerSample(x=float(k.x), y=float(k.y), marker_type=k.marker_type)

    sample = interpolate_marker(keyframes, t, eased=eased)
    return sample if sample is not None else fallback


def frame_zoom_at(
    track: ZoomTrack | Sequence[ZoomKeyframe],
    t: float,
    natural: NaturalSize | None,
    layout: FrameLayout | None,
    *,
    mode: QueryMode = "preview",
    active_index: int = 0,
) -> FrameTransform | None:
    """Frame-space transform for `t`, or None while the media or layout is unknown."""

    return map_zoom_to_frame(zoom_transform_at(track, t, mode=mode, active_index=active_index), natural, layout)


def frame_marker_at(
    keyframes: Sequence[TrackingKeyframe],
    t: float,
    natural: NaturalSize | None,
    layout: FrameLayout | None,
    *,
    interpolate: bool = True,
    eased: bool = False,
    active_index: int = 0,
    default_anchor: tuple[float, float] = DEFAULT_MARKER_ANCHOR,
) -> MarkerSample:
    """Frame-space marker; placed at `OFF_CANVAS` while the media or layout is unknown."""

    sample = marker_at(
        keyframes,
        t,
        interpolate=interpolate,
        eased=eased,
        active_index=active_index,
        default_anchor=default_anchor,
    )
    fx, fy = map_natural_to_frame((sample.x, sample.y), natural, layout)
    return MarkerSample(x=fx, y=fy, marker_type=sample.marker_type)
