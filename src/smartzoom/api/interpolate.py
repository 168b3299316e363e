from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException

from ..config import Settings
from ..core.keyframes import (
    ZoomTrack,
    normalize_tracking_keyframes,
    normalize_zoom_keyframes,
    zoom_track_to_dict,
)
from ..core.mapping import FrameLayout, NaturalSize
from ..core.query import DEFAULT_MARKER_ANCHOR, frame_marker_at, frame_zoom_at, marker_at, zoom_transform_at
from ..core.resample import densify
from .parsing import parse_float, parse_int, parse_mode
from .serializers import frame_transform_to_dict, marker_sample_to_dict, zoom_transform_to_dict


def _keyframe_records(body: dict) -> list[dict[str, Any]]:
    raw = body.get("keyframes")
    if not isinstance(raw, list):
        raise ValueError("keyframes must be a list")
    return [r for r in raw if isinstance(r, dict)]


def _natural_size(body: dict) -> NaturalSize | None:
    raw = body.get("naturalSize")
    if not isinstance(raw, dict):
        return None
    return NaturalSize(
        width=parse_float(raw.get("width"), field="naturalSize.width"),
        height=parse_float(raw.get("height"), field="naturalSize.height"),
    )


def _layout(body: dict) -> FrameLayout | None:
    raw = body.get("layout")
    if not isinstance(raw, dict):
        return None
    return FrameLayout(
        frame_width=parse_float(raw.get("frameWidth"), field="layout.frameWidth"),
        frame_height=parse_float(raw.get("frameHeight"), field="layout.frameHeight"),
    )


def mount_interpolate_api(app: FastAPI, *, settings: Settings) -> None:
    """Stateless endpoints that work on keyframes posted in the request body."""

    @app.post("/api/interpolate/densify")
    def densify_keyframes(body: dict) -> dict[str, Any]:
        try:
            keys = normalize_zoom_keyframes(_keyframe_records(body))
            fps = parse_float(body.get("fps", settings.dense_fps), field="fps")
            track = densify(ZoomTrack(kind="sparse", keyframes=keys), fps=fps)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return zoom_track_to_dict(track)

    @app.post("/api/interpolate/sample")
    def sample_keyframes(body: dict) -> dict[str, Any]:
        try:
            records = _keyframe_records(body)
            t = parse_float(body.get("time"), field="time")
            mode = parse_mode(body.get("mode"))
            active = parse_int(body.get("activeIndex", 0), field="activeIndex")
            natural = _natural_size(body)
            layout = _layout(body)
            kind = str(body.get("kind", "zoom"))

            if kind == "zoom":
                track_kind = str(body.get("track", "sparse"))
                if track_kind not in ("sparse", "dense"):
                    raise ValueError("track must be 'sparse' or 'dense'")
                track = ZoomTrack(kind=track_kind, keyframes=normalize_zoom_keyframes(records))  # type: ignore[arg-type]
                return {
                    "kind": kind,
                    "time": t,
                    "mode": mode,
                    "natural": zoom_transform_to_dict(zoom_transform_at(track, t, mode=mode, active_index=active)),
                    "frame": frame_transform_to_dict(
                        frame_zoom_at(track, t, natural, layout, mode=mode, active_index=active)
                    ),
                }

            if kind == "tracking":
                keys = normalize_tracking_keyframes(records, anchor=DEFAULT_MARKER_ANCHOR)
                interpolate = mode == "preview"
                marker = marker_at(keys, t, interpolate=interpolate, active_index=active)
                framed = frame_marker_at(keys, t, natural, layout, interpolate=interpolate, active_index=active)
                return {
                    "kind": kind,
                    "time": t,
                    "mode": mode,
                    "natural": marker_sample_to_dict(marker),
                    "frame": marker_sample_to_dict(framed),
                }

            raise ValueError(f"Unsupported kind: {kind!r}")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
