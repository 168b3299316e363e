from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .interpolation import ZoomTransform


DEFAULT_ASPECT_RATIO = 9.0 / 16.0

# Far outside any plausible frame; renderers treat it as "hide until ready".
OFF_CANVAS: tuple[float, float] = (-1.0e6, -1.0e6)


@dataclass(frozen=True)
class NaturalSize:
    """Intrinsic pixel size of the source media, known once it has loaded."""

    width: float
    height: float


@dataclass(frozen=True)
class FrameLayout:
    """The rendered, aspect-corrected output rectangle."""

    frame_width: float
    frame_height: float


@dataclass(frozen=True)
class FrameTransform:
    translate_x: float
    translate_y: float
    scale: float
    width: float
    height: float


def _positive_finite(*values: float | None) -> bool:
    for v in values:
        if v is None:
            return False
        f = float(v)
        if not np.isfinite(f) or f <= 0.0:
            return False
    return True


def fit_scale(natural: NaturalSize | None, layout: FrameLayout | None) -> float | None:
    """Cover-fit scale from natural space into frame space, or None when not ready."""

    if natural is None or layout is None:
        return None
    if not _positive_finite(natural.width, natural.height, layout.frame_width, layout.frame_height):
        return None
    return max(
        float(layout.frame_width) / float(natural.width),
        float(layout.frame_height) / float(natural.height),
    )


def is_ready(natural: NaturalSize | None, layout: FrameLayout | None) -> bool:
    return fit_scale(natural, layout) is not None


def map_natural_to_frame(
    point: tuple[float, float],
    natural: NaturalSize | None,
    layout: FrameLayout | None,
) -> tuple[float, float]:
    fit = fit_scale(natural, layout)
    if fit is None:
        return OFF_CANVAS
    return float(point[0]) * fit, float(point[1]) * fit


def map_frame_delta_to_natural(
    delta: tuple[float, float],
    natural: NaturalSize | None,
    layout: FrameLayout | None,
) -> tuple[float, float]:
    fit = fit_scale(natural, layout)
    if fit is None:
        return 0.0, 0.0
    dx = float(delta[0]) / fit
    dy = float(delta[1]) / fit
    if not np.isfinite(dx) or not np.isfinite(dy):
        return 0.0, 0.0
    return dx, dy


def map_zoom_to_frame(
    transform: ZoomTransform,
    natural: NaturalSize | None,
    layout: FrameLayout | None,
) -> FrameTransform | None:
    """Convert a natural-space pan/zoom into the transform a renderer applies.

    The pan offset moves the media the opposite way, so translations are negated.
    Returns None while the media size or layout is unknown.
    """

    fit = fit_scale(natural, layout)
    if fit is None or natural is None:
        return None
    scale = float(transform.scale) if np.isfinite(transform.scale) else 1.0
    return FrameTransform(
        translate_x=-float(transform.x) * fit,
        translate_y=-float(transform.y) * fit,
        scale=scale,
        width=float(natural.width) * fit,
        height=float(natural.height) * fit,
    )


def frame_layout_for_container(
    width: float,
    height: float,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> FrameLayout | None:
    """Largest `aspect_ratio` (w/h) rectangle that fits the container."""

    if not _positive_finite(width, height, aspect_ratio):
        return None
    w = float(width)
    h = float(height)
    ratio = float(aspect_ratio)
    if w / h > ratio:
        return FrameLayout(frame_width=h * ratio, frame_height=h)
    return FrameLayout(frame_width=w, frame_height=w / ratio)


def frame_center_in_natural(natural: NaturalSize | None, layout: FrameLayout | None) -> tuple[float, float] | None:
    fit = fit_scale(natural, layout)
    if fit is None or layout is None:
        return None
    return (float(layout.frame_width) / 2.0) / fit, (float(layout.frame_height) / 2.0) / fit
