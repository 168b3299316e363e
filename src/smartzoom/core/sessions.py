from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal

import numpy as np

from .interpolation import MarkerSample, ZoomTransform
from .keyframes import (
    DEFAULT_FPS,
    MarkerType,
    TrackingKeyframe,
    ZoomKeyframe,
    ZoomTrack,
    clamp_scale,
    default_tracking_keyframes,
    default_zoom_keyframes,
    finalize_keyframes,
    keyframe_to_dict,
    normalize_tracking_keyframe,
    normalize_tracking_keyframes,
    normalize_zoom_keyframe,
    normalize_zoom_keyframes,
    sort_keyframes,
)
from .mapping import (
    DEFAULT_ASPECT_RATIO,
    FrameLayout,
    FrameTransform,
    NaturalSize,
    fit_scale,
    frame_layout_for_container,
    map_frame_delta_to_natural,
)
from .query import (
    DEFAULT_MARKER_ANCHOR,
    QueryMode,
    frame_marker_at,
    frame_zoom_at,
    marker_at,
    zoom_transform_at,
)
from .resample import densify


logger = logging.getLogger(__name__)

SessionKind = Literal["zoom", "tracking"]


@dataclass(frozen=True)
class EditSession:
    """Immutable snapshot of one keyframe editing session.

    Every mutation in `InMemorySessionRegistry` publishes a new snapshot, so a
    reader holding one never observes a partially updated keyframe sequence.
    """

    id: str
    kind: SessionKind
    trim_start: float
    trim_end: float
    keyframes: tuple[ZoomKeyframe, ...] | tuple[TrackingKeyframe, ...]
    clip_uri: str | None = None
    active_index: int = 0
    natural_size: NaturalSize | None = None
    layout: FrameLayout | None = None
    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    finalized: bool = False
    revision: int = 1
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def ready(self) -> bool:
        return fit_scale(self.natural_size, self.layout) is not None


def bump_session_revision(session: EditSession) -> EditSession:
    return replace(
        session,
        revision=int(session.revision) + 1,
        updated_at=time.time(),
    )


def edit_session_to_dict(session: EditSession) -> dict[str, Any]:
    natural = session.natural_size
    layout = session.layout
    return {
        "id": session.id,
        "kind": session.kind,
        "clipUri": session.clip_uri,
        "trimStart": float(session.trim_start),
        "trimEnd": float(session.trim_end),
        "keyframes": [keyframe_to_dict(k) for k in session.keyframes],
        "activeIndex": int(session.active_index),
        "naturalSize": {"width": float(natural.width), "height": float(natural.height)} if natural is not None else None,
        "layout": {"frameWidth": float(layout.frame_width), "frameHeight": float(layout.frame_height)}
        if layout is not None
        else None,
        "fitScale": fit_scale(natural, layout),
        "aspectRatio": float(session.aspect_ratio),
        "ready": bool(session.ready),
        "finalized": bool(session.finalized),
        "revision": int(session.revision),
        "createdAt": float(session.created_at),
        "updatedAt": float(session.updated_at),
    }


class InMemorySessionRegistry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: dict[str, EditSession] = {}
        self._global_revision = 0

    def global_revision(self) -> int:
        with self._lock:
            return int(self._global_revision)

    @staticmethod
    def _validate_trim(trim_start: float, trim_end: float) -> tuple[float, float]:
        start = float(trim_start)
        end = float(trim_end)
        if not np.isfinite(start) or not np.isfinite(end):
            raise ValueError("trim range must be finite")
        if end < start:
            raise ValueError("trim_end must be >= trim_start")
        return start, end

    def _require_locked(self, session_id: str) -> EditSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(session_id)
        return session

    def _require_editable_locked(self, session_id: str) -> EditSession:
        session = self._require_locked(session_id)
        if session.finalized:
            raise ValueError("session is finalized")
        return session

    def _publish_locked(self, session: EditSession) -> EditSession:
        self._sessions[session.id] = session
        self._global_revision += 1
        return session

    @staticmethod
    def _check_index(session: EditSession, index: int) -> int:
        i = int(index)
        if i < 0 or i >= len(session.keyframes):
            raise ValueError("keyframe index is out of range")
        return i

    def create_session(
        self,
        kind: SessionKind,
        trim_start: float,
        trim_end: float,
        *,
        clip_uri: str | None = None,
        session_id: str | None = None,
        keyframes: Sequence[Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe] | None = None,
        aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    ) -> EditSession:
        if kind not in ("zoom", "tracking"):
            raise ValueError(f"Unsupported session kind: {kind!r}")
        start, end = self._validate_trim(trim_start, trim_end)
        ratio = float(aspect_ratio)
        if not np.isfinite(ratio) or ratio <= 0.0:
            raise ValueError("aspect_ratio must be a finite positive number")

        keys: tuple[Any, ...]
        if kind == "zoom":
            keys = normalize_zoom_keyframes(keyframes, default_timestamp=start)  # type: ignore[arg-type]
            if len(keys) != 3:
                keys = default_zoom_keyframes(start, end)
        else:
            keys = normalize_tracking_keyframes(
                keyframes,  # type: ignore[arg-type]
                default_timestamp=start,
                anchor=DEFAULT_MARKER_ANCHOR,
            )
            if len(keys) != 3:
                keys = default_tracking_keyframes(start, end, DEFAULT_MARKER_ANCHOR)

        sid = str(session_id).strip() if session_id is not None else uuid.uuid4().hex
        if not sid:
            raise ValueError("session_id cannot be empty")

        with self._lock:
            prev = self._sessions.get(sid)
            session = EditSession(
                id=sid,
                kind=kind,
                trim_start=start,
                trim_end=end,
                keyframes=keys,
                clip_uri=clip_uri,
                aspect_ratio=ratio,
                revision=1 if prev is None else int(prev.revision) + 1,
            )
            logger.debug("Created %s session %s over [%s, %s]", kind, sid, start, end)
            return self._publish_locked(session)

    def get_session(self, session_id: str) -> EditSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> list[EditSession]:
        with self._lock:
            return list(self._sessions.values())

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            existed = session_id in self._sessions
            if existed:
                del self._sessions[session_id]
                self._global_revision += 1
            return existed

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._global_revision += 1

    def set_natural_size(self, session_id: str, width: float, height: float) -> EditSession:
        w = float(width)
        h = float(height)
        if not np.isfinite(w) or not np.isfinite(h) or w <= 0.0 or h <= 0.0:
            raise ValueError("natural size must be finite and positive")
        with self._lock:
            session = self._require_locked(session_id)
            updated = bump_session_revision(replace(session, natural_size=NaturalSize(width=w, height=h)))
            return self._publish_locked(updated)

    def set_container(
        self,
        session_id: str,
        width: float,
        height: float,
        *,
        aspect_ratio: float | None = None,
    ) -> EditSession:
        with self._lock:
            session = self._require_locked(session_id)
            ratio = session.aspect_ratio if aspect_ratio is None else float(aspect_ratio)
            layout = frame_layout_for_container(width, height, ratio)
            if layout is None:
                logger.warning("Skipping layout for session %s: invalid dimensions %rx%r", session_id, width, height)
                return session
            updated = bump_session_revision(replace(session, layout=layout, aspect_ratio=ratio))
            return self._publish_locked(updated)

    def select_keyframe(self, session_id: str, index: int) -> EditSession:
        with self._lock:
            session = self._require_locked(session_id)
            i = self._check_index(session, index)
            updated = bump_session_revision(replace(session, active_index=i))
            return self._publish_locked(updated)

    def _replace_keyframe_locked(self, session: EditSession, index: int, new_key: Any) -> EditSession:
        keys = list(session.keyframes)
        keys[index] = new_key
        ordered = sort_keyframes(keys)
        # Keep the edited keyframe active even if its timestamp moved it.
        active = next(i for i, k in enumerate(ordered) if k is new_key)
        updated = bump_session_revision(replace(session, keyframes=ordered, active_index=active))
        return self._publish_locked(updated)

    def update_keyframe(self, session_id: str, index: int, **fields: Any) -> EditSession:
        with self._lock:
            session = self._require_editable_locked(session_id)
            i = self._check_index(session, index)
            current = session.keyframes[i]
            if "marker_type" in fields:
                fields["markerType"] = fields.pop("marker_type")
            merged = {**keyframe_to_dict(current), **fields}
            if session.kind == "zoom":
                new_key: Any = normalize_zoom_keyframe(merged, default_timestamp=current.timestamp)
            else:
                new_key = normalize_tracking_keyframe(
                    merged,
                    default_timestamp=current.timestamp,
                    anchor=(current.x, current.y),
                )
            return self._replace_keyframe_locked(session, i, new_key)

    def apply_pan(self, session_id: str, dx: float, dy: float) -> EditSession:
        """Move the active keyframe by a frame-space gesture delta."""

        with self._lock:
            session = self._require_editable_locked(session_id)
            ndx, ndy = map_frame_delta_to_natural((dx, dy), session.natural_size, session.layout)
            if ndx == 0.0 and ndy == 0.0:
                return session
            current = session.keyframes[session.active_index]
            new_key = replace(current, x=float(current.x) + ndx, y=float(current.y) + ndy)
            return self._replace_keyframe_locked(session, session.active_index, new_key)

    def apply_pinch(self, session_id: str, scale_delta: float) -> EditSession:
        with self._lock:
            session = self._require_editable_locked(session_id)
            if session.kind != "zoom":
                raise ValueError("Only zoom sessions can be pinched")
            factor = float(scale_delta)
            if not np.isfinite(factor) or factor <= 0.0:
                return session
            current = session.keyframes[session.active_index]
            new_key = replace(current, scale=clamp_scale(float(current.scale) * factor))  # type: ignore[union-attr]
            return self._replace_keyframe_locked(session, session.active_index, new_key)

    def set_marker_type(self, session_id: str, marker_type: MarkerType | str) -> EditSession:
        mtype = MarkerType.from_any(marker_type)
        with self._lock:
            session = self._require_editable_locked(session_id)
            if session.kind != "tracking":
                raise ValueError("Only tracking sessions have marker types")
            current = session.keyframes[session.active_index]
            new_key = replace(current, marker_type=mtype)
            return self._replace_keyframe_locked(session, session.active_index, new_key)

    def finalize_session(self, session_id: str) -> EditSession:
        with self._lock:
            session = self._require_locked(session_id)
            keys = finalize_keyframes(session.keyframes, session.trim_start, session.trim_end)
            active = min(int(session.active_index), len(keys) - 1) if keys else 0
            updated = bump_session_revision(replace(session, keyframes=keys, active_index=active, finalized=True))
            logger.info("Finalized %s session %s with %d keyframes", session.kind, session.id, len(keys))
            return self._publish_locked(updated)

    def preview_track(self, session_id: str, *, fps: float = DEFAULT_FPS) -> ZoomTrack:
        with self._lock:
            session = self._require_locked(session_id)
        if session.kind != "zoom":
            raise ValueError("Only zoom sessions have a preview track")
        keys = finalize_keyframes(session.keyframes, session.trim_start, session.trim_end)
        return densify(ZoomTrack(kind="sparse", keyframes=keys), fps=fps)  # type: ignore[arg-type]

    def sample_zoom(
        self,
        session_id: str,
        t: float,
        *,
        mode: QueryMode = "preview",
        dense: bool = False,
        fps: float = DEFAULT_FPS,
    ) -> tuple[ZoomTransform, FrameTransform | None]:
        with self._lock:
            session = self._require_locked(session_id)
        if session.kind != "zoom":
            raise ValueError("Only zoom sessions can be sampled for a zoom transform")
        track: ZoomTrack
        if dense and mode == "preview":
            track = self.preview_track(session_id, fps=fps)
        else:
            track = ZoomTrack(kind="sparse", keyframes=session.keyframes)  # type: ignore[arg-type]
        natural = zoom_transform_at(track, t, mode=mode, active_index=session.active_index)
        frame = frame_zoom_at(
            track,
            t,
            session.natural_size,
            session.layout,
            mode=mode,
            active_index=session.active_index,
        )
        return natural, frame

    def sample_marker(
        self,
        session_id: str,
        t: float,
        *,
        interpolate: bool = True,
    ) -> tuple[MarkerSample, MarkerSample]:
        with self._lock:
            session = self._require_locked(session_id)
        if session.kind != "tracking":
            raise ValueError("Only tracking sessions can be sampled for a marker")
        keys: Sequence[TrackingKeyframe] = session.keyframes  # type: ignore[assignment]
        natural = marker_at(keys, t, interpolate=interpolate, active_index=session.active_index, default_anchor=DEFAULT_MARKER_ANCHOR)
        frame = frame_marker_at(
            keys,
            t,
            session.natural_size,
            session.layout,
            interpolate=interpolate,
            active_index=session.active_index,
            default_anchor=DEFAULT_MARKER_ANCHOR,
        )
        return natural, frame


REGISTRY = InMemorySessionRegistry()
