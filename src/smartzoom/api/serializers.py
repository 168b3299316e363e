from __future__ import annotations

from typing import Any

from ..core.interpolation import MarkerSample, ZoomTransform
from ..core.mapping import FrameTransform


def zoom_transform_to_dict(t: ZoomTransform) -> dict[str, float]:
    return {"x": float(t.x), "y": float(t.y), "scale": float(t.scale)}


def frame_transform_to_dict(t: FrameTransform | None) -> dict[str, float] | None:
    if t is None:
        return None
    return {
        "translateX": float(t.translate_x),
        "translateY": float(t.translate_y),
        "scale": float(t.scale),
        "width": float(t.width),
        "height": float(t.height),
    }


def marker_sample_to_dict(m: MarkerSample) -> dict[str, Any]:
    return {"x": float(m.x), "y": float(m.y), "markerType": m.marker_type.value}
