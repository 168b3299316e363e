from __future__ import annotations

from typing import Any

import numpy as np

from ..core.query import QueryMode


def parse_bool(value: Any, *, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        raise ValueError(f"Missing {field}")
    s = str(value).strip().lower()
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid {field}")


def parse_float(value: Any, *, field: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError(f"Missing {field}" if value is None else f"Invalid {field}")
    try:
        v = float(value)
    except Exception as ex:
        raise ValueError(f"Invalid {field}") from ex
    if not np.isfinite(v):
        raise ValueError(f"Invalid {field}")
    return v


def parse_optional_float(value: Any, *, field: str) -> float | None:
    if value is None:
        return None
    return parse_float(value, field=field)


def parse_int(value: Any, *, field: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValueError(f"Missing {field}" if value is None else f"Invalid {field}")
    try:
        return int(value)
    except Exception as ex:
        raise ValueError(f"Invalid {field}") from ex


def parse_mode(value: Any) -> QueryMode:
    if value is None:
        return "preview"
    mode = str(value).strip().lower()
    if mode not in {"preview", "edit"}:
        raise ValueError("mode must be 'preview' or 'edit'")
    return mode  # type: ignore[return-value]


def parse_keyframe_fields(body: dict[str, Any]) -> dict[str, Any]:
    """Pick the editable keyframe fields out of a request body."""

    allowed = ("timestamp", "x", "y", "scale", "markerType")
    fields = {k: body[k] for k in allowed if k in body}
    if not fields:
        raise ValueError("Provide at least one of: " + ", ".join(allowed))
    for k in ("timestamp", "x", "y", "scale"):
        if k in fields:
            fields[k] = parse_float(fields[k], field=k)
    return fields
