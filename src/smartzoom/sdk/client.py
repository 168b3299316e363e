from __future__ import annotations

import contextlib
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import httpx

from ..core.keyframes import TrackingKeyframe, ZoomKeyframe, keyframe_to_dict


class PreviewRequestError(RuntimeError):
    """A preview server answered with a 4xx/5xx status."""

    def __init__(self, action: str, status_code: int, detail: str) -> None:
        super().__init__(f"Failed to {action}: {status_code} {detail}")
        self.status_code = int(status_code)
        self.detail = detail


def _keyframe_payload(
    keyframes: Sequence[Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe] | None,
) -> list[dict[str, Any]] | None:
    if keyframes is None:
        return None
    out: list[dict[str, Any]] = []
    for k in keyframes:
        if isinstance(k, (ZoomKeyframe, TrackingKeyframe)):
            out.append(keyframe_to_dict(k))
        else:
            out.append(dict(k))
    return out


class PreviewClient:
    """HTTP client for a running smartzoom preview server.

    This is the "remote" companion to `smartzoom.run()`. Every method maps to one
    route under `/api`. Pass `http` to reuse an existing client (for example a
    FastAPI `TestClient`); otherwise a short-lived `httpx.Client` is opened per
    call.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8000", *, http: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http

    @property
    def url(self) -> str:
        return self.base_url + "/"

    @contextlib.contextmanager
    def _client(self, timeout_s: float) -> Iterator[httpx.Client]:
        if self._http is not None:
            yield self._http
            return
        with httpx.Client(base_url=self.base_url, timeout=timeout_s) as client:
            yield client

    def _request(
        self,
        action: str,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout_s: float = 10.0,
    ) -> Any:
        with self._client(timeout_s) as client:
            res = client.request(method, path, json=json, params=params)
        if res.status_code >= 400:
            try:
                detail = str(res.json().get("detail", res.text))
            except ValueError:
                detail = res.text
            raise PreviewRequestError(action, res.status_code, detail)
        return res.json()

    def is_alive(self, *, timeout_s: float = 0.5) -> bool:
        try:
            data = self._request("probe server", "GET", "/healthz", timeout_s=timeout_s)
        except (httpx.HTTPError, PreviewRequestError):
            return False
        return bool(data.get("ok"))

    def global_revision(self, *, timeout_s: float = 10.0) -> int:
        data = self._request("get events", "GET", "/api/events", timeout_s=timeout_s)
        return int(data.get("globalRevision", 0))

    def reset(self, *, timeout_s: float = 10.0) -> None:
        self._request("reset server", "POST", "/api/reset", timeout_s=timeout_s)

    def list_sessions(self, *, timeout_s: float = 10.0) -> list[dict[str, Any]]:
        return list(self._request("list sessions", "GET", "/api/sessions", timeout_s=timeout_s))

    def create_session(
        self,
        kind: str,
        trim_start: float,
        trim_end: float,
        *,
        clip_uri: str | None = None,
        session_id: str | None = None,
        keyframes: Sequence[Mapping[str, Any] | ZoomKeyframe | TrackingKeyframe] | None = None,
        aspect_ratio: float | None = None,
        project_id: str | None = None,
        clip_id: str | None = None,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        """Open an edit session and return its snapshot (including the new id).

        With `project_id`/`clip_id` the server seeds the session from its saved
        keyframes when the caller passes none.
        """

        body: dict[str, Any] = {
            "kind": kind,
            "trimStart": float(trim_start),
            "trimEnd": float(trim_end),
            "clipUri": clip_uri,
            "sessionId": session_id,
        }
        payload = _keyframe_payload(keyframes)
        if payload is not None:
            body["keyframes"] = payload
        if aspect_ratio is not None:
            body["aspectRatio"] = float(aspect_ratio)
        if project_id or clip_id:
            body["projectId"] = project_id
            body["clipId"] = clip_id
        return self._request("create session", "POST", "/api/sessions", json=body, timeout_s=timeout_s)

    def get_session(self, session_id: str, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return self._request("get session", "GET", f"/api/sessions/{session_id}", timeout_s=timeout_s)

    def delete_session(self, session_id: str, *, timeout_s: float = 10.0) -> None:
        self._request("delete session", "DELETE", f"/api/sessions/{session_id}", timeout_s=timeout_s)

    def set_media_size(self, session_id: str, width: float, height: float, *, timeout_s: float = 10.0) -> dict[str, Any]:
        body = {"width": float(width), "height": float(height)}
        return self._request("set media size", "PUT", f"/api/sessions/{session_id}/media", json=body, timeout_s=timeout_s)

    def set_layout(
        self,
        session_id: str,
        width: float,
        height: float,
        *,
        aspect_ratio: float | None = None,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"width": float(width), "height": float(height)}
        if aspect_ratio is not None:
            body["aspectRatio"] = float(aspect_ratio)
        return self._request("set layout", "PUT", f"/api/sessions/{session_id}/layout", json=body, timeout_s=timeout_s)

    def update_keyframe(self, session_id: str, index: int, *, timeout_s: float = 10.0, **fields: Any) -> dict[str, Any]:
        if "marker_type" in fields:
            fields["markerType"] = fields.pop("marker_type")
        return self._request(
            "update keyframe",
            "PATCH",
            f"/api/sessions/{session_id}/keyframes/{int(index)}",
            json=fields,
            timeout_s=timeout_s,
        )

    def select_keyframe(self, session_id: str, index: int, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return self._request(
            "select keyframe",
            "PUT",
            f"/api/sessions/{session_id}/active",
            json={"index": int(index)},
            timeout_s=timeout_s,
        )

    def pan(self, session_id: str, dx: float, dy: float, *, timeout_s: float = 10.0) -> dict[str, Any]:
        body = {"dx": float(dx), "dy": float(dy)}
        return self._request("pan", "POST", f"/api/sessions/{session_id}/gestures/pan", json=body, timeout_s=timeout_s)

    def pinch(self, session_id: str, scale: float, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return self._request(
            "pinch",
            "POST",
            f"/api/sessions/{session_id}/gestures/pinch",
            json={"scale": float(scale)},
            timeout_s=timeout_s,
        )

    def set_marker_type(self, session_id: str, marker_type: str, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return self._request(
            "set marker type",
            "PUT",
            f"/api/sessions/{session_id}/marker-type",
            json={"markerType": str(getattr(marker_type, "value", marker_type))},
            timeout_s=timeout_s,
        )

    def finalize(
        self,
        session_id: str,
        *,
        project_id: str | None = None,
        clip_id: str | None = None,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        """Finalize a session; with `project_id`/`clip_id` the server also saves it."""

        body = {"projectId": project_id, "clipId": clip_id} if project_id or clip_id else None
        return self._request(
            "finalize session",
            "POST",
            f"/api/sessions/{session_id}/finalize",
            json=body,
            timeout_s=timeout_s,
        )

    def sample(
        self,
        session_id: str,
        time: float,
        *,
        mode: str = "preview",
        dense: bool = False,
        fps: float | None = None,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"time": float(time), "mode": mode, "dense": "1" if dense else "0"}
        if fps is not None:
            params["fps"] = float(fps)
        return self._request("sample session", "GET", f"/api/sessions/{session_id}/sample", params=params, timeout_s=timeout_s)

    def dense_track(self, session_id: str, *, fps: float | None = None, timeout_s: float = 10.0) -> dict[str, Any]:
        params = {"fps": float(fps)} if fps is not None else None
        return self._request("get dense track", "GET", f"/api/sessions/{session_id}/dense", params=params, timeout_s=timeout_s)

    def densify(
        self,
        keyframes: Sequence[Mapping[str, Any] | ZoomKeyframe],
        *,
        fps: float | None = None,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"keyframes": _keyframe_payload(keyframes)}
        if fps is not None:
            body["fps"] = float(fps)
        return self._request("densify keyframes", "POST", "/api/interpolate/densify", json=body, timeout_s=timeout_s)
