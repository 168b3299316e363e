from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from .interpolation import IDENTITY_TRANSFORM, ZoomTransform
from .keyframes import MAX_SCALE, MIN_SCALE, ZoomKeyframe, segment_index


logger = logging.getLogger(__name__)


def _channels(key: ZoomKeyframe) -> np.ndarray:
    return np.asarray([key.x, key.y, getattr(key, "scale", 1.0)], dtype=np.float64)


def _sanitize(out: np.ndarray) -> ZoomTransform:
    x, y, scale = (float(v) for v in out)
    if not (np.isfinite(x) and np.isfinite(y) and np.isfinite(scale)):
        logger.warning("Spline produced non-finite output x=%r y=%r scale=%r; using fallback", x, y, scale)
    return ZoomTransform(
        x=x if np.isfinite(x) else 0.0,
        y=y if np.isfinite(y) else 0.0,
        scale=float(np.clip(scale if np.isfinite(scale) else 1.0, MIN_SCALE, MAX_SCALE)),
    )


def catmull_rom(
    p0: ZoomKeyframe,
    p1: ZoomKeyframe,
    p2: ZoomKeyframe,
    p3: ZoomKeyframe,
    t: float,
) -> ZoomTransform:
    """Evaluate the segment p1 -> p2 at `t` in [0, 1], per channel (x, y, scale)."""

    c0, c1, c2, c3 = _channels(p0), _channels(p1), _channels(p2), _channels(p3)
    t2 = t * t
    t3 = t2 * t
    # Uniform Catmull-Rom spline.
    with np.errstate(over="ignore", invalid="ignore"):
        out = 0.5 * (
            (2.0 * c1)
            + (-c0 + c2) * t
            + (2.0 * c0 - 5.0 * c1 + 4.0 * c2 - c3) * t2
            + (-c0 + 3.0 * c1 - 3.0 * c2 + c3) * t3
        )
    return _sanitize(out)


def sample_spline(keyframes: Sequence[ZoomKeyframe], t: float) -> ZoomTransform:
    """Sample an ascending keyframe sequence at time `t`.

    Time is clamped to the keyframe range, so the curve never extrapolates; a NaN
    time holds the first keyframe. The first and last segments duplicate their
    end point in place of the missing neighbour.
    """

    n = len(keyframes)
    if n < 2:
        return IDENTITY_TRANSFORM

    first_ts = float(keyframes[0].timestamp)
    last_ts = float(keyframes[-1].timestamp)
    query = first_ts if np.isnan(t) else float(t)
    query = max(first_ts, min(last_ts, query))

    i = segment_index([float(k.timestamp) for k in keyframes], query)
    p1 = keyframes[i - 1]
    p2 = keyframes[i]
    p0 = keyframes[i - 2] if i >= 2 else p1
    p3 = keyframes[i + 1] if i + 1 < n else p2

    t0 = float(p1.timestamp)
    t1 = float(p2.timestamp)
    if not np.isfinite(t0) or not np.isfinite(t1) or t1 == t0:
        logger.debug("Zero or invalid segment duration t0=%r t1=%r; holding keyframe", t0, t1)
        return _sanitize(_channels(p1))

    return catmull_rom(p0, p1, p2, p3, (query - t0) / (t1 - t0))
