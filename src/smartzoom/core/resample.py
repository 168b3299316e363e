from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .interpolation import ease_in_out_quad, lerp
from .keyframes import DEFAULT_FPS, ZoomKeyframe, ZoomTrack, clamp_scale, sort_keyframes


def densify(keyframes: ZoomTrack | Sequence[ZoomKeyframe], fps: float = DEFAULT_FPS) -> ZoomTrack:
    """Bake sparse keyframes into a fixed-rate dense track.

    Each segment `[k_i, k_i+1]` contributes `max(1, floor(dt * fps))` eased samples
    starting at `k_i`; the final keyframe is appended as the last sample.
    """

    fps_v = float(fps)
    if not np.isfinite(fps_v) or fps_v <= 0.0:
        raise ValueError("fps must be a finite positive number")

    if isinstance(keyframes, ZoomTrack):
        if keyframes.kind == "dense":
            return keyframes
        source: Sequence[ZoomKeyframe] = keyframes.keyframes
    else:
        source = keyframes

    keys = sort_keyframes(source)
    if len(keys) < 2:
        return ZoomTrack(kind="dense", keyframes=keys)

    out: list[ZoomKeyframe] = []
    for k0, k1 in zip(keys[:-1], keys[1:]):
        t0 = float(k0.timestamp)
        duration = float(k1.timestamp) - t0
        steps = max(1, math.floor(duration * fps_v)) if np.isfinite(duration) else 1
        for s in range(steps):
            u = s / steps
            v = lerp(k0, k1, ease_in_out_quad(u))
            out.append(ZoomKeyframe(timestamp=t0 + u * duration, x=v.x, y=v.y, scale=clamp_scale(v.scale)))

    last = keys[-1]
    out.append(ZoomKeyframe(timestamp=float(last.timestamp), x=float(last.x), y=float(last.y), scale=clamp_scale(last.scale)))
    return ZoomTrack(kind="dense", keyframes=tuple(out))
