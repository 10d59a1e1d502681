"""
crop_geometry.py

Pure geometry for the crop-to-aspect / bounded-scale transform.

Given the source size, the pass-through threshold, the longest allowed side and
a target aspect (width / height), compute:

1) a centered crop rectangle that reduces the height of sources narrower than
   the target aspect (wider sources are kept whole and their own aspect is used)
2) the output size, clamped so neither side exceeds the maximum

All divisions truncate, so output sizes are reproducible; they end up in the
output file name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


class GeometryError(ValueError):
    """Raised when a computed crop or output dimension would be smaller than one pixel."""


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class TransformPlan:
    skip: bool
    crop_rect: Rect
    output_width: int
    output_height: int
    effective_aspect: float

    @property
    def output_size(self) -> Tuple[int, int]:
        return self.output_width, self.output_height


def should_skip(width: int, height: int, min_size: int) -> bool:
    """True when both sides are already at or below min_size."""
    return width <= min_size and height <= min_size


def compute_crop_size(width: int, height: int, dest_aspect: float) -> Tuple[int, int, float]:
    """
    Returns (crop_width, crop_height, effective_aspect).

    Sources narrower than dest_aspect keep their full width and lose height.
    Anything else is cropped to itself and dest_aspect is replaced by the
    source aspect for the scale step.
    """
    source_aspect = width / height
    if source_aspect < dest_aspect:
        crop_width = width
        crop_height = int(crop_width / dest_aspect)
        return crop_width, crop_height, dest_aspect
    return width, height, source_aspect


def compute_output_size(
        crop_width: int,
        crop_height: int,
        max_size: int,
        effective_aspect: float,
) -> Tuple[int, int]:
    if crop_width <= max_size and crop_height <= max_size:
        return crop_width, crop_height
    if effective_aspect < 1:
        return int(max_size * effective_aspect), max_size
    return max_size, int(max_size / effective_aspect)


def _require_positive(label: str, value: float) -> None:
    if value < 1:
        raise GeometryError(f"{label} must be at least 1 pixel, got {value}")


def plan(
        width: int,
        height: int,
        min_size: int,
        max_size: int,
        dest_aspect: float,
) -> TransformPlan:
    """
    Plan the crop and scale for a width x height source.

    Args:
        width, height: Source size in pixels.
        min_size: Sources with both sides <= min_size are passed through.
        max_size: Longest side allowed after cropping.
        dest_aspect: Requested width / height of the crop.

    Returns:
        TransformPlan. For skip plans the crop is the whole frame and the
        output size equals the source size.

    Raises:
        GeometryError: if the source size or aspect is not positive, or if a
            crop or output dimension truncates below one pixel.
    """
    _require_positive("source width", width)
    _require_positive("source height", height)
    if dest_aspect <= 0:
        raise GeometryError(f"destination aspect must be positive, got {dest_aspect}")

    if should_skip(width, height, min_size):
        return TransformPlan(
            skip=True,
            crop_rect=Rect(0, 0, width, height),
            output_width=width,
            output_height=height,
            effective_aspect=width / height,
        )

    crop_width, crop_height, effective_aspect = compute_crop_size(width, height, dest_aspect)
    _require_positive("crop height", crop_height)

    x0 = (width - crop_width) // 2
    y0 = (height - crop_height) // 2

    output_width, output_height = compute_output_size(crop_width, crop_height, max_size, effective_aspect)
    _require_positive("output width", output_width)
    _require_positive("output height", output_height)

    return TransformPlan(
        skip=False,
        crop_rect=Rect(x0, y0, crop_width, crop_height),
        output_width=output_width,
        output_height=output_height,
        effective_aspect=effective_aspect,
    )
