from __future__ import annotations

import math

import pytest

from smartzoom.core.keyframes import (
    DEFAULT_ZOOM_SCALE,
    MarkerType,
    TrackingKeyframe,
    ZoomKeyframe,
    default_tracking_keyframes,
    default_zoom_keyframes,
    finalize_keyframes,
    normalize_tracking_keyframe,
    normalize_zoom_keyframe,
    normalize_zoom_keyframes,
    segment_index,
    tracking_keyframe_to_dict,
    zoom_keyframe_to_dict,
)


def test_marker_type_from_any_is_case_insensitive() -> None:
    assert MarkerType.from_any(" Emoji ") is MarkerType.EMOJI
    assert MarkerType.from_any(MarkerType.GIF) is MarkerType.GIF
    with pytest.raises(ValueError):
        MarkerType.from_any("sparkle")


def test_normalize_zoom_keyframe_fills_defaults_and_clamps_scale() -> None:
    k = normalize_zoom_keyframe({"timestamp": math.nan, "x": None, "y": "abc"}, default_timestamp=2.5)
    assert k == ZoomKeyframe(timestamp=2.5, x=0.0, y=0.0, scale=DEFAULT_ZOOM_SCALE)

    assert normalize_zoom_keyframe({"timestamp": 1.0, "scale": 0.2}).scale == 1.0
    assert normalize_zoom_keyframe({"timestamp": 1.0, "scale": 40.0}).scale == 10.0
    assert normalize_zoom_keyframe({"timestamp": 1.0, "scale": math.inf}).scale == DEFAULT_ZOOM_SCALE


def test_normalize_accepts_legacy_time_key() -> None:
    k = normalize_zoom_keyframe({"time": 3.0, "x": 1.0, "y": 2.0, "scale": 2.0})
    assert k.timestamp == 3.0


def test_normalize_tracking_keyframe_uses_anchor_and_circle_fallback() -> None:
    k = normalize_tracking_keyframe({"timestamp": 1.0, "markerType": "hologram"}, anchor=(5.0, 6.0))
    assert (k.x, k.y) == (5.0, 6.0)
    assert k.marker_type is MarkerType.CIRCLE

    k2 = normalize_tracking_keyframe({"timestamp": 1.0, "x": 1.0, "y": 2.0, "marker_type": "gif"})
    assert k2.marker_type is MarkerType.GIF


def test_normalize_keyframes_sorts_and_handles_empty() -> None:
    assert normalize_zoom_keyframes([]) == ()
    assert normalize_zoom_keyframes(None) == ()
    keys = normalize_zoom_keyframes([{"timestamp": 2.0}, {"timestamp": 0.0}, {"timestamp": 1.0}])
    assert [k.timestamp for k in keys] == [0.0, 1.0, 2.0]


def test_default_keyframes_are_evenly_spaced() -> None:
    zoom = default_zoom_keyframes(1.0, 5.0)
    assert [k.timestamp for k in zoom] == [1.0, 3.0, 5.0]
    assert all(k.scale == DEFAULT_ZOOM_SCALE and k.x == 0.0 and k.y == 0.0 for k in zoom)

    tracking = default_tracking_keyframes(0.0, 2.0, anchor=(10.0, 20.0))
    assert [k.timestamp for k in tracking] == [0.0, 1.0, 2.0]
    assert all(k.marker_type is MarkerType.CIRCLE and (k.x, k.y) == (10.0, 20.0) for k in tracking)


def test_finalize_clamps_to_trim_range_and_returns_copy() -> None:
    source = [
        ZoomKeyframe(timestamp=-1.0, x=1.0, y=1.0, scale=2.0),
        ZoomKeyframe(timestamp=9.0, x=2.0, y=2.0, scale=20.0),
        ZoomKeyframe(timestamp=3.0, x=3.0, y=3.0, scale=1.0),
    ]
    out = finalize_keyframes(source, 0.0, 5.0)
    assert [k.timestamp for k in out] == [0.0, 3.0, 5.0]
    assert out[-1].scale == 10.0
    assert source[0].timestamp == -1.0


def test_segment_index_clamps_to_valid_segment() -> None:
    ts = [0.0, 1.0, 2.0]
    assert segment_index(ts, -5.0) == 1
    assert segment_index(ts, 0.5) == 1
    assert segment_index(ts, 1.0) == 2
    assert segment_index(ts, 2.0) == 2
    assert segment_index(ts, 99.0) == 2


def test_keyframe_dicts_are_camel_case() -> None:
    assert zoom_keyframe_to_dict(ZoomKeyframe(timestamp=1.0, x=2.0, y=3.0, scale=4.0)) == {
        "timestamp": 1.0,
        "x": 2.0,
        "y": 3.0,
        "scale": 4.0,
    }
    d = tracking_keyframe_to_dict(TrackingKeyframe(timestamp=1.0, x=2.0, y=3.0, marker_type=MarkerType.EMOJI))
    assert d["markerType"] == "emoji"
