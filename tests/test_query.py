from __future__ import annotations

import numpy as np
import pytest

from smartzoom.core.interpolation import IDENTITY_TRANSFORM, interpolate_linear
from smartzoom.core.keyframes import MarkerType, TrackingKeyframe, ZoomKeyframe, ZoomTrack
from smartzoom.core.mapping import OFF_CANVAS, FrameLayout, NaturalSize
from smartzoom.core.query import frame_marker_at, frame_zoom_at, marker_at, zoom_transform_at
from smartzoom.core.resample import densify
from smartzoom.core.spline import sample_spline


ZOOM = (
    ZoomKeyframe(timestamp=0.0, x=0.0, y=0.0, scale=1.5),
    ZoomKeyframe(timestamp=1.0, x=90.0, y=30.0, scale=3.0),
    ZoomKeyframe(timestamp=2.0, x=0.0, y=0.0, scale=12.0),
)
MARKERS = (
    TrackingKeyframe(timestamp=0.0, x=540.0, y=960.0, marker_type=MarkerType.CIRCLE),
    TrackingKeyframe(timestamp=1.0, x=0.0, y=0.0, marker_type=MarkerType.GIF),
)
NATURAL = NaturalSize(width=1080.0, height=1920.0)
LAYOUT = FrameLayout(frame_width=360.0, frame_height=640.0)


def test_preview_on_sparse_track_follows_spline() -> None:
    track = ZoomTrack(kind="sparse", keyframes=ZOOM)
    for t in (0.0, 0.3, 1.4, 2.0):
        assert zoom_transform_at(track, t) == sample_spline(ZOOM, t)
    # Plain sequences are treated as sparse.
    assert zoom_transform_at(ZOOM, 0.3) == sample_spline(ZOOM, 0.3)


def test_preview_on_dense_track_uses_linear_lookup() -> None:
    dense = densify(ZOOM, fps=30)
    assert zoom_transform_at(dense, 0.51) == interpolate_linear(dense.keyframes, 0.51)


def test_edit_mode_returns_active_keyframe() -> None:
    track = ZoomTrack(kind="sparse", keyframes=ZOOM)
    out = zoom_transform_at(track, 0.0, mode="edit", active_index=1)
    assert (out.x, out.y, out.scale) == (90.0, 30.0, 3.0)

    clamped = zoom_transform_at(track, 0.0, mode="edit", active_index=99)
    assert clamped.scale == 10.0


def test_zoom_query_defaults() -> None:
    assert zoom_transform_at(ZoomTrack(kind="sparse"), 1.0) == IDENTITY_TRANSFORM
    assert zoom_transform_at(ZOOM[:1], 1.0) == IDENTITY_TRANSFORM
    with pytest.raises(ValueError):
        zoom_transform_at(ZOOM, 1.0, mode="scrub")  # type: ignore[arg-type]


def test_marker_query_modes() -> None:
    mid = marker_at(MARKERS, 0.5)
    assert np.allclose([mid.x, mid.y], [270.0, 480.0])
    assert mid.marker_type is MarkerType.CIRCLE

    editing = marker_at(MARKERS, 0.2, interpolate=False, active_index=1)
    assert (editing.x, editing.y, editing.marker_type) == (0.0, 0.0, MarkerType.GIF)

    fallback = marker_at(MARKERS[:1], 0.5, default_anchor=(7.0, 8.0))
    assert (fallback.x, fallback.y, fallback.marker_type) == (7.0, 8.0, MarkerType.CIRCLE)


def test_frame_space_queries() -> None:
    framed = frame_marker_at(MARKERS, 0.0, NATURAL, LAYOUT)
    assert np.allclose([framed.x, framed.y], [180.0, 320.0])

    hidden = frame_marker_at(MARKERS, 0.0, None, LAYOUT)
    assert (hidden.x, hidden.y) == OFF_CANVAS

    zoom = frame_zoom_at(ZOOM, 1.0, NATURAL, LAYOUT)
    assert zoom is not None
    assert np.allclose([zoom.translate_x, zoom.translate_y, zoom.scale], [-30.0, -10.0, 3.0])
    assert frame_zoom_at(ZOOM, 1.0, NATURAL, None) is None
