from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .keyframes import MarkerType, TrackingKeyframe, ZoomKeyframe, clamp_scale, sort_keyframes


@dataclass(frozen=True)
class ZoomTransform:
    """Instantaneous pan/zoom in natural-space pixels."""

    x: float
    y: float
    scale: float = 1.0


@dataclass(frozen=True)
class MarkerSample:
    x: float
    y: float
    marker_type: MarkerType = MarkerType.CIRCLE


IDENTITY_TRANSFORM = ZoomTransform(x=0.0, y=0.0, scale=1.0)


def ease_in_out_quad(t: float) -> float:
    if t < 0.5:
        return 2.0 * t * t
    u = 1.0 - t
    return 1.0 - 2.0 * u * u


def bracket(
    keyframes: Sequence[ZoomKeyframe | TrackingKeyframe],
    t: float,
) -> tuple[ZoomKeyframe | TrackingKeyframe, ZoomKeyframe | TrackingKeyframe]:
    """Return `(before, after)` around `t` in an ascending keyframe sequence.

    `before` is the last keyframe at or before `t` (else the first), `after` the
    first keyframe at or after `t` (else the last).
    """

    if len(keyframes) == 0:
        raise ValueError("keyframes cannot be empty")
    timestamps = [float(k.timestamp) for k in keyframes]
    n = len(timestamps)
    i_before = bisect_right(timestamps, t) - 1
    i_after = bisect_left(timestamps, t)
    return keyframes[max(0, i_before)], keyframes[min(n - 1, i_after)]


def segment_fraction(
    before: ZoomKeyframe | TrackingKeyframe,
    after: ZoomKeyframe | TrackingKeyframe,
    t: float,
    *,
    eased: bool = False,
) -> float:
    span = float(after.timestamp) - float(before.timestamp)
    if span == 0.0 or not np.isfinite(span):
        return 0.0
    raw = (float(t) - float(before.timestamp)) / span
    if not np.isfinite(raw):
        return 0.0
    u = max(0.0, min(1.0, raw))
    return ease_in_out_quad(u) if eased else u


def lerp(
    before: ZoomKeyframe | TrackingKeyframe,
    after: ZoomKeyframe | TrackingKeyframe,
    t: float,
) -> ZoomTransform:
    s0 = float(getattr(before, "scale", 1.0))
    s1 = float(getattr(after, "scale", 1.0))
    return ZoomTransform(
        x=float(before.x) + (float(after.x) - float(before.x)) * t,
        y=float(before.y) + (float(after.y) - float(before.y)) * t,
        scale=s0 + (s1 - s0) * t,
    )


def interpolate_linear(
    keyframes: Sequence[ZoomKeyframe],
    t: float,
    *,
    eased: bool = False,
) -> ZoomTransform:
    if len(keyframes) < 2:
        return IDENTITY_TRANSFORM

    keys = sort_keyframes(keyframes)
    if np.isnan(t):
        first = keys[0]
        return ZoomTransform(x=float(first.x), y=float(first.y), scale=clamp_scale(first.scale))

    before, after = bracket(keys, float(t))
    out = lerp(before, after, segment_fraction(before, after, float(t), eased=eased))
    return ZoomTransform(x=out.x, y=out.y, scale=clamp_scale(out.scale))


def interpolate_marker(
    keyframes: Sequence[TrackingKeyframe],
    t: float,
    *,
    eased: bool = False,
) -> MarkerSample | None:
    if len(keyframes) == 0:
        return None

    keys = sort_keyframes(keyframes)
    if len(keys) == 1 or np.isnan(t):
        k = keys[0]
        return MarkerSample(x=float(k.x), y=float(k.y), marker_type=k.marker_type)

    before, after = bracket(keys, float(t))
    out = lerp(before, after, segment_fraction(before, after, float(t), eased=eased))
    # Marker type snaps to the earlier keyframe.
    return MarkerSample(x=out.x, y=out.y, marker_type=before.marker_type)  # type: ignore[union-attr]
