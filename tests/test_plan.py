"""
Tests for turning raw request options into operation plans.
"""

import pytest

from imageconv.errors import InvalidRequest
from imageconv.models import Anchor, FitMode, OutputFormat
from imageconv.pipeline.plan import OperationKind, build_plan, coerce_int, parse_blur


def test_numeric_strings_are_coerced():
    plan = build_plan({"format": "webp", "quality": "60", "width": "120"}, "convert")
    assert plan.quality == 60
    assert plan.resize.width == 120
    assert plan.resize.height is None


def test_absent_values_stay_absent():
    plan = build_plan({"quality": "", "width": None}, OperationKind.CONVERT)
    assert plan.quality is None
    assert plan.resize is None


@pytest.mark.parametrize("quality", [0, 101, "-5", "150"])
def test_quality_out_of_range_rejected(quality):
    with pytest.raises(InvalidRequest):
        build_plan({"quality": quality}, "compress")


def test_non_numeric_quality_rejected():
    with pytest.raises(InvalidRequest, match="quality"):
        build_plan({"quality": "high"}, "convert")


def test_resize_without_dimensions_rejected():
    with pytest.raises(InvalidRequest, match="Width or height"):
        build_plan({"fit": "inside"}, "resize")


def test_resize_with_one_dimension_accepted():
    plan = build_plan({"height": "40", "fit": "inside", "position": "top"}, "resize")
    assert plan.resize.height == 40
    assert plan.resize.fit is FitMode.INSIDE
    assert plan.resize.position is Anchor.NORTH
    assert plan.resize.allow_enlargement is False
    assert plan.target_format is None


def test_negative_dimension_rejected():
    with pytest.raises(InvalidRequest):
        build_plan({"width": "-10"}, "resize")


def test_convert_defaults_to_avif():
    plan = build_plan({}, "convert")
    assert plan.target_format is OutputFormat.AVIF
    assert plan.quality is None


def test_jpg_alias():
    assert build_plan({"format": "JPG"}, "convert").target_format is OutputFormat.JPEG


def test_unknown_format_rejected():
    with pytest.raises(InvalidRequest, match="Unsupported output format"):
        build_plan({"format": "gif"}, "convert")


def test_unknown_fit_rejected():
    with pytest.raises(InvalidRequest, match="fit"):
        build_plan({"width": 10, "fit": "squash"}, "resize")


def test_compress_defers_format_and_ignores_geometry():
    plan = build_plan({"quality": 50, "width": 10, "height": 10}, "compress")
    assert plan.target_format is None
    assert plan.resize is None
    assert plan.quality == 50


def test_convert_ignores_transform_flags():
    plan = build_plan({"format": "png", "rotate": 90, "grayscale": "true"}, "convert")
    assert plan.rotate is None
    assert plan.grayscale is False
    assert not plan.has_transforms


def test_unrecognized_keys_ignored():
    plan = build_plan({"format": "png", "colour": "purple", "dpi": 300}, "convert")
    assert plan.target_format is OutputFormat.PNG


def test_process_merges_sub_objects_and_flags():
    plan = build_plan(
        {
            "resize": {"width": 64, "fit": "contain"},
            "convert": {"format": "jpeg", "quality": 70},
            "rotate": "270",
            "flip": "true",
            "flop": True,
            "grayscale": "false",
            "blur": "true",
            "sharpen": "1",
            "normalize": "yes",
        },
        "process",
    )
    assert plan.resize.width == 64
    assert plan.resize.fit is FitMode.CONTAIN
    assert plan.target_format is OutputFormat.JPEG
    assert plan.quality == 70
    assert plan.rotate == 270
    assert plan.flip and plan.flop and plan.sharpen and plan.normalize
    assert plan.grayscale is False
    assert plan.blur is True


def test_process_sub_objects_win_over_flat_keys():
    plan = build_plan({"width": 10, "format": "png", "resize": {"width": 20}}, "process")
    assert plan.resize.width == 20
    assert plan.target_format is OutputFormat.PNG


def test_process_defaults_to_avif():
    assert build_plan({}, "process").target_format is OutputFormat.AVIF


@pytest.mark.parametrize("rotate", ["45", 360, -90])
def test_invalid_rotation_rejected(rotate):
    with pytest.raises(InvalidRequest, match="rotate"):
        build_plan({"rotate": rotate}, "process")


def test_metadata_plan_is_empty():
    plan = build_plan({"format": "png", "width": 10}, "metadata")
    assert plan.target_format is None
    assert not plan.has_transforms


def test_unknown_operation_rejected():
    with pytest.raises(InvalidRequest):
        build_plan({}, "explode")


def test_parse_blur():
    assert parse_blur(None) is None
    assert parse_blur("false") is None
    assert parse_blur(True) is True
    assert parse_blur("2.5") == 2.5
    assert parse_blur(7) == 7.0
    with pytest.raises(InvalidRequest):
        parse_blur("-1")
    with pytest.raises(InvalidRequest):
        parse_blur("fuzzy")


def test_coerce_int_rejects_bool():
    with pytest.raises(InvalidRequest):
        coerce_int(True, "width")
    assert coerce_int(" 42 ", "width") == 42
    assert coerce_int(3.0, "width") == 3
