from __future__ import annotations

from bisect import bisect_right
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal, TypeVar

import numpy as np


TrackKind = Literal["sparse", "dense"]

MIN_SCALE = 1.0
MAX_SCALE = 10.0
DEFAULT_ZOOM_SCALE = 1.5
SESSION_KEYFRAME_COUNT = 3
DEFAULT_FPS = 30


class MarkerType(str, Enum):
    """Visual style of a tracking marker.

    Marker types are categorical: they are never blended between keyframes.
    """

    CIRCLE = "circle"
    EMOJI = "emoji"
    GIF = "gif"

    @classmethod
    def from_any(cls, value: Any) -> "MarkerType":
        if isinstance(value, cls):
            return value

        v = str(value).strip().lower()
        for member in cls:
            if member.value == v:
                return member

        raise ValueError(f"Unsupported marker type: {value!r}. Use 'circle', 'emoji' or 'gif'.")


@dataclass(frozen=True)
class ZoomKeyframe:
    timestamp: float
    x: float = 0.0
    y: float = 0.0
    scale: float = MIN_SCALE


@dataclass(frozen=True)
class TrackingKeyframe:
    timestamp: float
    x: float = 0.0
    y: float = 0.0
    marker_type: MarkerType = MarkerType.CIRCLE


@dataclass(frozen=True)
class ZoomTrack:
    """An ordered zoom/pan trajectory.

    `sparse` tracks hold the handful of user-edited control points, `dense`
    tracks hold fixed-rate samples baked by `resample.densify`.
    """

    kind: TrackKind
    keyframes: tuple[ZoomKeyframe, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.keyframes)


K = TypeVar("K", ZoomKeyframe, TrackingKeyframe)


def _finite_or(value: Any, fallback: float) -> float:
    if isinstance(value, bool) or value is None:
        return float(fallback)
    try:
        v = float(value)
    except (TypeError, ValueError):
        return float(fallback)
    if not np.isfinite(v):
        return float(fallback)
    return v


def clamp_scale(scale: float) -> float:
    s = float(scale)
    if not np.isfinite(s):
        return MIN_SCALE
    return max(MIN_SCALE, min(MAX_SCALE, s))


def _fields(raw: Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe) -> dict[str, Any]:
    if isinstance(raw, ZoomKeyframe):
        return {"timestamp": raw.timestamp, "x": raw.x, "y": raw.y, "scale": raw.scale}
    if isinstance(raw, TrackingKeyframe):
        return {"timestamp": raw.timestamp, "x": raw.x, "y": raw.y, "markerType": raw.marker_type}
    if isinstance(raw, Mapping):
        out = dict(raw)
        # Legacy dense records stored their time under "time".
        if "timestamp" not in out and "time" in out:
            out["timestamp"] = out["time"]
        if "markerType" not in out and "marker_type" in out:
            out["markerType"] = out["marker_type"]
        return out
    return {}


def normalize_zoom_keyframe(
    raw: Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe,
    *,
    default_timestamp: float = 0.0,
) -> ZoomKeyframe:
    f = _fields(raw)
    return ZoomKeyframe(
        timestamp=_finite_or(f.get("timestamp"), default_timestamp),
        x=_finite_or(f.get("x"), 0.0),
        y=_finite_or(f.get("y"), 0.0),
        scale=clamp_scale(_finite_or(f.get("scale"), DEFAULT_ZOOM_SCALE)),
    )


def normalize_tracking_keyframe(
    raw: Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe,
    *,
    default_timestamp: float = 0.0,
    anchor: tuple[float, float] = (0.0, 0.0),
) -> TrackingKeyframe:
    f = _fields(raw)
    raw_type = f.get("markerType")
    try:
        marker_type = MarkerType.from_any(raw_type) if raw_type is not None else MarkerType.CIRCLE
    except ValueError:
        marker_type = MarkerType.CIRCLE
    return TrackingKeyframe(
        timestamp=_finite_or(f.get("timestamp"), default_timestamp),
        x=_finite_or(f.get("x"), anchor[0]),
        y=_finite_or(f.get("y"), anchor[1]),
        marker_type=marker_type,
    )


def sort_keyframes(keyframes: Sequence[K]) -> tuple[K, ...]:
    # sorted() is stable, so duplicate timestamps keep their authoring order.
    return tuple(sorted(keyframes, key=lambda k: float(k.timestamp)))


def normalize_zoom_keyframes(
    raw: Sequence[Mapping[str, Any] | ZoomKeyframe] | None,
    *,
    default_timestamp: float = 0.0,
) -> tuple[ZoomKeyframe, ...]:
    if not raw:
        return ()
    return sort_keyframes([normalize_zoom_keyframe(r, default_timestamp=default_timestamp) for r in raw])


def normalize_tracking_keyframes(
    raw: Sequence[Mapping[str, Any] | TrackingKeyframe] | None,
    *,
    default_timestamp: float = 0.0,
    anchor: tuple[float, float] = (0.0, 0.0),
) -> tuple[TrackingKeyframe, ...]:
    if not raw:
        return ()
    return sort_keyframes(
        [normalize_tracking_keyframe(r, default_timestamp=default_timestamp, anchor=anchor) for r in raw]
    )


def _even_timestamps(trim_start: float, trim_end: float, count: int = SESSION_KEYFRAME_COUNT) -> list[float]:
    start = float(trim_start)
    span = float(trim_end) - start
    if count == 1:
        return [start]
    return [start + span * i / (count - 1) for i in range(count)]


def default_zoom_keyframes(trim_start: float, trim_end: float) -> tuple[ZoomKeyframe, ...]:
    return tuple(
        ZoomKeyframe(timestamp=ts, x=0.0, y=0.0, scale=DEFAULT_ZOOM_SCALE)
        for ts in _even_timestamps(trim_start, trim_end)
    )


def default_tracking_keyframes(
    trim_start: float,
    trim_end: float,
    anchor: tuple[float, float] = (0.0, 0.0),
) -> tuple[TrackingKeyframe, ...]:
    return tuple(
        TrackingKeyframe(timestamp=ts, x=float(anchor[0]), y=float(anchor[1]), marker_type=MarkerType.CIRCLE)
        for ts in _even_timestamps(trim_start, trim_end)
    )


def finalize_keyframes(keyframes: Sequence[K], trim_start: float, trim_end: float) -> tuple[K, ...]:
    """Return a sanitized copy of `keyframes` with timestamps clamped to the trim range."""

    lo = float(trim_start)
    hi = float(trim_end)
    out: list[Any] = []
    for kf in keyframes:
        if isinstance(kf, ZoomKeyframe):
            clean: Any = normalize_zoom_keyframe(kf, default_timestamp=lo)
        else:
            clean = normalize_tracking_keyframe(kf, default_timestamp=lo)
        out.append(replace(clean, timestamp=max(lo, min(clean.timestamp, hi))))
    return sort_keyframes(out)


def segment_index(timestamps: Sequence[float], t: float) -> int:
    """Index of the first timestamp strictly greater than `t`, clamped to [1, n-1].

    The active segment is then `(i - 1, i)`. Requires at least two timestamps.
    """

    n = len(timestamps)
    i = bisect_right(timestamps, t)
    return max(1, min(n - 1, i))


def zoom_keyframe_to_dict(kf: ZoomKeyframe) -> dict[str, Any]:
    return {
        "timestamp": float(kf.timestamp),
        "x": float(kf.x),
        "y": float(kf.y),
        "scale": float(kf.scale),
    }


def tracking_keyframe_to_dict(kf: TrackingKeyframe) -> dict[str, Any]:
    return {
        "timestamp": float(kf.timestamp),
        "x": float(kf.x),
        "y": float(kf.y),
        "markerType": kf.marker_type.value,
    }


def keyframe_to_dict(kf: ZoomKeyframe | TrackingKeyframe) -> dict[str, Any]:
    if isinstance(kf, ZoomKeyframe):
        return zoom_keyframe_to_dict(kf)
    return tracking_keyframe_to_dict(kf)


def zoom_track_to_dict(track: ZoomTrack) -> dict[str, Any]:
    return {
        "kind": track.kind,
        "keyframes": [zoom_keyframe_to_dict(k) for k in track.keyframes],
    }
