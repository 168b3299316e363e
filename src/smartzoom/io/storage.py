from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from ..core.keyframes import (
    TrackingKeyframe,
    ZoomKeyframe,
    keyframe_to_dict,
    normalize_tracking_keyframes,
    normalize_zoom_keyframes,
)
from ..core.sessions import SessionKind


logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class TrimInfo:
    trim_start: float
    trim_end: float


def _safe_name(value: str) -> str:
    name = _UNSAFE.sub("", str(value))
    if not name:
        raise ValueError(f"Invalid storage id: {value!r}")
    return name


class KeyframeStore:
    """JSON files holding finalized keyframe sets and trim ranges per clip.

    Layout under `root`:
      keyframes/<project>_<clip>_<kind>.json   list of keyframe records
      trims/<project>_<clip>.json              {"trimStart": .., "trimEnd": ..}

    Reads never raise on bad content: unreadable or malformed files are logged
    and treated as missing.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    def _keyframes_path(self, project_id: str, clip_id: str, kind: SessionKind) -> Path:
        if kind not in ("zoom", "tracking"):
            raise ValueError(f"Unsupported keyframe kind: {kind!r}")
        return self.root / "keyframes" / f"{_safe_name(project_id)}_{_safe_name(clip_id)}_{kind}.json"

    def _trim_path(self, project_id: str, clip_id: str) -> Path:
        return self.root / "trims" / f"{_safe_name(project_id)}_{_safe_name(clip_id)}.json"

    @staticmethod
    def _write_json(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(path)

    @staticmethod
    def _read_json(path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def save_keyframes(
        self,
        project_id: str,
        clip_id: str,
        kind: SessionKind,
        keyframes: Sequence[ZoomKeyframe] | Sequence[TrackingKeyframe],
    ) -> Path:
        path = self._keyframes_path(project_id, clip_id, kind)
        self._write_json(path, [keyframe_to_dict(k) for k in keyframes])
        logger.debug("Saved %d %s keyframes to %s", len(keyframes), kind, path)
        return path

    def load_keyframes(
        self,
        project_id: str,
        clip_id: str,
        kind: SessionKind,
    ) -> tuple[ZoomKeyframe, ...] | tuple[TrackingKeyframe, ...]:
        path = self._keyframes_path(project_id, clip_id, kind)
        data = self._read_json(path)
        if data is None:
            return ()
        if not isinstance(data, list):
            logger.warning("Ignoring %s: expected a list of keyframes", path)
            return ()
        records = [r for r in data if isinstance(r, dict)]
        if kind == "zoom":
            return normalize_zoom_keyframes(records)
        return normalize_tracking_keyframes(records)

    def clear_keyframes(self, project_id: str, clip_id: str, kind: SessionKind) -> bool:
        path = self._keyframes_path(project_id, clip_id, kind)
        if not path.exists():
            return False
        path.unlink()
        return True

    def save_trim(self, project_id: str, clip_id: str, trim: TrimInfo) -> Path:
        start = float(trim.trim_start)
        end = float(trim.trim_end)
        if not np.isfinite(start) or not np.isfinite(end) or end < start:
            raise ValueError("trim range must be finite with trim_end >= trim_start")
        path = self._trim_path(project_id, clip_id)
        self._write_json(path, {"trimStart": start, "trimEnd": end})
        return path

    def load_trim(self, project_id: str, clip_id: str) -> TrimInfo | None:
        path = self._trim_path(project_id, clip_id)
        data = self._read_json(path)
        if not isinstance(data, dict):
            return None
        try:
            start = float(data["trimStart"])
            end = float(data["trimEnd"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed trim info in %s", path)
            return None
        if not np.isfinite(start) or not np.isfinite(end) or end < start:
            logger.warning("Ignoring invalid trim range in %s", path)
            return None
        return TrimInfo(trim_start=start, trim_end=end)

    def remove_trim(self, project_id: str, clip_id: str) -> bool:
        path = self._trim_path(project_id, clip_id)
        if not path.exists():
            return False
        path.unlink()
        return True
