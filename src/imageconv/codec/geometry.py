"""Resize layout computation for the five fit modes."""

from dataclasses import dataclass

from ..errors import TransformError
from ..models import FitMode, ResizeSpec


@dataclass(frozen=True)
class ResizeLayout:
    """Where a resize lands: the resampled size and the final canvas size."""

    scaled: tuple[int, int]
    canvas: tuple[int, int]
    offset: tuple[int, int] = (0, 0)

    @property
    def crops(self) -> bool:
        return self.scaled[0] > self.canvas[0] or self.scaled[1] > self.canvas[1]

    @property
    def pads(self) -> bool:
        return self.scaled[0] < self.canvas[0] or self.scaled[1] < self.canvas[1]


def _scale(width: int, height: int, factor: float) -> tuple[int, int]:
    return max(1, round(width * factor)), max(1, round(height * factor))


def _offset(outer: tuple[int, int], inner: tuple[int, int], centering: tuple[float, float]) -> tuple[int, int]:
    """Offset of the inner box within the outer box, anchored by centering."""
    return (
        round(abs(outer[0] - inner[0]) * centering[0]),
        round(abs(outer[1] - inner[1]) * centering[1]),
    )


def compute_layout(width: int, height: int, spec: ResizeSpec) -> ResizeLayout:
    """
    Compute the resize layout for a source of the given size.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        spec: Requested geometry

    Returns:
        ResizeLayout describing the resample and crop/pad

    Raises:
        TransformError: If the target box is degenerate
    """
    target_w, target_h = spec.width, spec.height
    if target_w is None and target_h is None:
        raise TransformError("Resize requires a width or a height")
    if (target_w is not None and target_w < 1) or (target_h is not None and target_h < 1):
        raise TransformError(f"Degenerate resize target: {target_w}x{target_h}")

    # One dimension: proportional scale, fit mode is irrelevant
    if target_w is None or target_h is None:
        factor = target_w / width if target_w is not None else target_h / height
        if not spec.allow_enlargement:
            factor = min(factor, 1.0)
        size = _scale(width, height, factor)
        return ResizeLayout(scaled=size, canvas=size)

    fit = spec.fit

    if fit in (FitMode.INSIDE, FitMode.OUTSIDE):
        pick = min if fit is FitMode.INSIDE else max
        factor = pick(target_w / width, target_h / height)
        if not spec.allow_enlargement:
            factor = min(factor, 1.0)
        size = _scale(width, height, factor)
        return ResizeLayout(scaled=size, canvas=size)

    if not spec.allow_enlargement:
        target_w, target_h = min(target_w, width), min(target_h, height)
    canvas = (target_w, target_h)

    if fit is FitMode.FILL:
        return ResizeLayout(scaled=canvas, canvas=canvas)

    if fit is FitMode.COVER:
        factor = max(target_w / width, target_h / height)
        scaled_w, scaled_h = _scale(width, height, factor)
        scaled = (max(scaled_w, target_w), max(scaled_h, target_h))
    else:
        factor = min(target_w / width, target_h / height)
        scaled_w, scaled_h = _scale(width, height, factor)
        scaled = (min(scaled_w, target_w), min(scaled_h, target_h))

    return ResizeLayout(
        scaled=scaled,
        canvas=canvas,
        offset=_offset(scaled, canvas, spec.position.centering),
    )
