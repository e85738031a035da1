"""
Tests for resize layout computation.
"""

import pytest

from imageconv.codec.geometry import compute_layout
from imageconv.errors import TransformError
from imageconv.models import Anchor, FitMode, ResizeSpec


def layout(src, **kwargs):
    return compute_layout(src[0], src[1], ResizeSpec(**kwargs))


def test_single_width_scales_proportionally():
    result = layout((300, 300), width=150, fit=FitMode.INSIDE)
    assert result.scaled == result.canvas == (150, 150)


def test_single_height_scales_proportionally():
    result = layout((200, 100), height=50)
    assert result.canvas == (100, 50)


def test_single_dimension_never_enlarges_by_default():
    assert layout((100, 50), width=200).canvas == (100, 50)
    assert layout((100, 50), width=200, allow_enlargement=True).canvas == (200, 100)


def test_fill_ignores_aspect_ratio():
    result = layout((100, 50), width=30, height=30, fit=FitMode.FILL)
    assert result.scaled == result.canvas == (30, 30)


def test_fill_clamped_to_source_without_enlargement():
    assert layout((100, 50), width=200, height=200, fit=FitMode.FILL).canvas == (100, 50)


def test_cover_crops_overflow():
    result = layout((100, 50), width=25, height=25, fit=FitMode.COVER)
    assert result.scaled == (50, 25)
    assert result.canvas == (25, 25)
    assert result.crops and not result.pads
    assert result.offset == (12, 0)


def test_cover_anchor_moves_crop():
    west = layout((100, 50), width=25, height=25, position=Anchor.WEST)
    east = layout((100, 50), width=25, height=25, position=Anchor.EAST)
    assert west.offset == (0, 0)
    assert east.offset == (25, 0)


def test_contain_pads_remainder():
    result = layout((100, 50), width=50, height=50, fit=FitMode.CONTAIN)
    assert result.scaled == (50, 25)
    assert result.canvas == (50, 50)
    assert result.pads and not result.crops


def test_inside_fits_within_box():
    assert layout((100, 50), width=40, height=40, fit=FitMode.INSIDE).canvas == (40, 20)


def test_outside_covers_box_without_crop():
    assert layout((100, 50), width=20, height=20, fit=FitMode.OUTSIDE).canvas == (40, 20)


@pytest.mark.parametrize("fit", list(FitMode))
def test_enlargement_guard_for_every_fit(fit):
    result = layout((100, 50), width=400, height=300, fit=fit)
    assert result.canvas[0] <= 100
    assert result.canvas[1] <= 50


def test_enlargement_allowed():
    result = layout((100, 50), width=400, height=300, fit=FitMode.FILL, allow_enlargement=True)
    assert result.canvas == (400, 300)


def test_computed_dimensions_never_zero():
    assert layout((1000, 1), width=10, fit=FitMode.INSIDE).canvas == (10, 1)


@pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (0, None)])
def test_zero_target_is_degenerate(width, height):
    with pytest.raises(TransformError):
        layout((100, 50), width=width, height=height, fit=FitMode.FILL)
