from __future__ import annotations

import json
from pathlib import Path

import pytest

from smartzoom.core.keyframes import MarkerType, TrackingKeyframe, ZoomKeyframe
from smartzoom.io.storage import KeyframeStore, TrimInfo


def test_keyframes_round_trip_through_json(tmp_path: Path) -> None:
    store = KeyframeStore(tmp_path)
    keys = (
        TrackingKeyframe(timestamp=0.0, x=1.0, y=2.0, marker_type=MarkerType.EMOJI),
        TrackingKeyframe(timestamp=1.0, x=3.0, y=4.0, marker_type=MarkerType.GIF),
    )
    path = store.save_keyframes("proj-1", "clip-1", "tracking", keys)
    assert path == tmp_path / "keyframes" / "proj-1_clip-1_tracking.json"
    assert json.loads(path.read_text())[0]["markerType"] == "emoji"

    assert store.load_keyframes("proj-1", "clip-1", "tracking") == keys
    assert store.load_keyframes("proj-1", "clip-1", "zoom") == ()


def test_load_normalizes_stored_records(tmp_path: Path) -> None:
    store = KeyframeStore(tmp_path)
    path = tmp_path / "keyframes" / "p_c_zoom.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([{"time": 2.0, "x": 5.0}, {"timestamp": 1.0, "scale": 50.0}, "junk"]))

    keys = store.load_keyframes("p", "c", "zoom")
    assert keys == (
        ZoomKeyframe(timestamp=1.0, x=0.0, y=0.0, scale=10.0),
        ZoomKeyframe(timestamp=2.0, x=5.0, y=0.0, scale=1.5),
    )


def test_malformed_files_read_as_missing(tmp_path: Path) -> None:
    store = KeyframeStore(tmp_path)
    (tmp_path / "keyframes").mkdir()
    (tmp_path / "keyframes" / "p_c_zoom.json").write_text("{not json")
    (tmp_path / "trims").mkdir()
    (tmp_path / "trims" / "p_c.json").write_text(json.dumps({"trimStart": "a"}))

    assert store.load_keyframes("p", "c", "zoom") == ()
    assert store.load_trim("p", "c") is None


def test_trim_round_trip_and_removal(tmp_path: Path) -> None:
    store = KeyframeStore(tmp_path)
    assert store.load_trim("p", "c") is None
    store.save_trim("p", "c", TrimInfo(trim_start=1.5, trim_end=4.0))
    assert store.load_trim("p", "c") == TrimInfo(trim_start=1.5, trim_end=4.0)
    assert store.remove_trim("p", "c") is True
    assert store.remove_trim("p", "c") is False

    with pytest.raises(ValueError):
        store.save_trim("p", "c", TrimInfo(trim_start=4.0, trim_end=1.0))


def test_clear_keyframes_and_unsafe_ids(tmp_path: Path) -> None:
    store = KeyframeStore(tmp_path)
    store.save_keyframes("../p", "c", "zoom", [ZoomKeyframe(timestamp=0.0)])
    assert (tmp_path / "keyframes" / "p_c_zoom.json").exists()
    assert store.clear_keyframes("p", "c", "zoom") is True
    assert store.clear_keyframes("p", "c", "zoom") is False

    with pytest.raises(ValueError):
        store.save_keyframes("///", "c", "zoom", [])
    with pytest.raises(ValueError):
        store.load_keyframes("p", "c", "pan")  # type: ignore[arg-type]
