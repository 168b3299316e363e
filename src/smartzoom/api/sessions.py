from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, HTTPException

from ..config import Settings
from ..core.keyframes import SESSION_KEYFRAME_COUNT, zoom_track_to_dict
from ..core.sessions import EditSession, InMemorySessionRegistry, edit_session_to_dict
from ..io.storage import KeyframeStore, TrimInfo
from .parsing import (
    parse_bool,
    parse_float,
    parse_int,
    parse_keyframe_fields,
    parse_mode,
    parse_optional_float,
)
from .serializers import frame_transform_to_dict, marker_sample_to_dict, zoom_transform_to_dict


def _require(registry: InMemorySessionRegistry, session_id: str) -> EditSession:
    session = registry.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return session


def _storage_key(body: dict | None) -> tuple[str, str] | None:
    if not body:
        return None
    project_id = body.get("projectId")
    clip_id = body.get("clipId")
    if project_id is None and clip_id is None:
        return None
    if not project_id or not clip_id:
        raise ValueError("projectId and clipId must be given together")
    return str(project_id), str(clip_id)


def mount_sessions_api(
    app: FastAPI,
    registry: InMemorySessionRegistry,
    *,
    store: KeyframeStore,
    settings: Settings,
) -> None:
    """Mount edit-session endpoints.

    Each mutating route returns the full session snapshot so the caller can
    re-render without a follow-up GET. Sessions opened with `projectId`/`clipId`
    start from the keyframes and trim saved in `store`, and finalizing them
    writes both back.
    """

    def _call(fn: Any, *args: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            session = fn(*args, **kwargs)
        except KeyError:
            raise HTTPException(status_code=404, detail="Unknown session")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return edit_session_to_dict(session)

    @app.get("/api/sessions")
    def list_sessions() -> list[dict[str, Any]]:
        sessions = registry.list_sessions()
        sessions.sort(key=lambda s: (s.created_at, s.id))
        return [edit_session_to_dict(s) for s in sessions]

    @app.post("/api/sessions")
    def create_session(body: dict) -> dict[str, Any]:
        try:
            kind = str(body.get("kind", "zoom"))
            key = _storage_key(body)
            keyframes: Any = body.get("keyframes")
            if keyframes is not None and not isinstance(keyframes, list):
                raise ValueError("keyframes must be a list")

            saved_trim: TrimInfo | None = None
            if key is not None and kind in ("zoom", "tracking"):
                saved_trim = store.load_trim(*key)
                if keyframes is None:
                    saved = store.load_keyframes(*key, kind)  # type: ignore[arg-type]
                    if len(saved) == SESSION_KEYFRAME_COUNT:
                        keyframes = list(saved)

            if saved_trim is not None and "trimEnd" not in body:
                trim_start, trim_end = saved_trim.trim_start, saved_trim.trim_end
            else:
                trim_start = parse_float(body.get("trimStart", 0.0), field="trimStart")
                trim_end = parse_float(body.get("trimEnd"), field="trimEnd")

            aspect = parse_optional_float(body.get("aspectRatio"), field="aspectRatio")
            session = registry.create_session(
                kind,  # type: ignore[arg-type]
                trim_start,
                trim_end,
                clip_uri=body.get("clipUri"),
                session_id=body.get("sessionId"),
                keyframes=keyframes,
                aspect_ratio=settings.aspect_ratio if aspect is None else aspect,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return edit_session_to_dict(session)

    @app.get("/api/sessions/{session_id}")
    def get_session(session_id: str) -> dict[str, Any]:
        return edit_session_to_dict(_require(registry, session_id))

    @app.delete("/api/sessions/{session_id}")
    def delete_session(session_id: str) -> dict[str, Any]:
        if not registry.delete_session(session_id):
            raise HTTPException(status_code=404, detail="Unknown session")
        return {"ok": True, "globalRevision": registry.global_revision()}

    @app.put("/api/sessions/{session_id}/media")
    def set_media(session_id: str, body: dict) -> dict[str, Any]:
        try:
            width = parse_float(body.get("width"), field="width")
            height = parse_float(body.get("height"), field="height")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.set_natural_size, session_id, width, height)

    @app.put("/api/sessions/{session_id}/layout")
    def set_layout(session_id: str, body: dict) -> dict[str, Any]:
        try:
            width = parse_float(body.get("width"), field="width")
            height = parse_float(body.get("height"), field="height")
            aspect = parse_optional_float(body.get("aspectRatio"), field="aspectRatio")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.set_container, session_id, width, height, aspect_ratio=aspect)

    @app.patch("/api/sessions/{session_id}/keyframes/{index}")
    def update_keyframe(session_id: str, index: int, body: dict) -> dict[str, Any]:
        try:
            fields = parse_keyframe_fields(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.update_keyframe, session_id, index, **fields)

    @app.put("/api/sessions/{session_id}/active")
    def select_keyframe(session_id: str, body: dict) -> dict[str, Any]:
        try:
            index = parse_int(body.get("index"), field="index")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.select_keyframe, session_id, index)

    @app.post("/api/sessions/{session_id}/gestures/pan")
    def pan(session_id: str, body: dict) -> dict[str, Any]:
        try:
            dx = parse_float(body.get("dx"), field="dx")
            dy = parse_float(body.get("dy"), field="dy")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.apply_pan, session_id, dx, dy)

    @app.post("/api/sessions/{session_id}/gestures/pinch")
    def pinch(session_id: str, body: dict) -> dict[str, Any]:
        try:
            scale = parse_float(body.get("scale"), field="scale")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _call(registry.apply_pinch, session_id, scale)

    @app.put("/api/sessions/{session_id}/marker-type")
    def set_marker_type(session_id: str, body: dict) -> dict[str, Any]:
        marker_type = body.get("markerType")
        if marker_type is None:
            raise HTTPException(status_code=400, detail="Missing markerType")
        return _call(registry.set_marker_type, session_id, marker_type)

    @app.post("/api/sessions/{session_id}/finalize")
    def finalize(session_id: str, body: dict | None = Body(default=None)) -> dict[str, Any]:
        try:
            key = _storage_key(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        out = _call(registry.finalize_session, session_id)
        if key is not None:
            session = _require(registry, session_id)
            store.save_keyframes(*key, session.kind, session.keyframes)
            store.save_trim(*key, TrimInfo(trim_start=session.trim_start, trim_end=session.trim_end))
        return out

    @app.get("/api/sessions/{session_id}/sample")
    def sample(
        session_id: str,
        time: str,
        mode: str | None = None,
        dense: str | None = None,
        fps: float | None = None,
    ) -> dict[str, Any]:
        session = _require(registry, session_id)
        try:
            query_time = parse_float(time, field="time")
            query_mode = parse_mode(mode)
            use_dense = parse_bool(dense, field="dense") if dense is not None else False
            rate = parse_float(fps, field="fps") if fps is not None else float(settings.dense_fps)
            if session.kind == "zoom":
                natural, frame = registry.sample_zoom(session_id, query_time, mode=query_mode, dense=use_dense, fps=rate)
                return {
                    "sessionId": session_id,
                    "kind": session.kind,
                    "time": query_time,
                    "mode": query_mode,
                    "natural": zoom_transform_to_dict(natural),
                    "frame": frame_transform_to_dict(frame),
                }
            marker, framed = registry.sample_marker(session_id, query_time, interpolate=query_mode == "preview")
        except KeyError:
            raise HTTPException(status_code=404, detail="Unknown session")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "sessionId": session_id,
            "kind": session.kind,
            "time": query_time,
            "mode": query_mode,
            "natural": marker_sample_to_dict(marker),
            "frame": marker_sample_to_dict(framed),
        }

    @app.get("/api/sessions/{session_id}/dense")
    def dense_track(session_id: str, fps: float | None = None) -> dict[str, Any]:
        _require(registry, session_id)
        try:
            rate = parse_float(fps, field="fps") if fps is not None else float(settings.dense_fps)
            track = registry.preview_track(session_id, fps=rate)
        except KeyError:
            raise HTTPException(status_code=404, detail="Unknown session")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return zoom_track_to_dict(track)
