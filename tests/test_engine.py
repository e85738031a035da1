"""
Tests for the transform engine.
"""

import pytest

from imageconv.codec import PillowCodec
from imageconv.codec.filters import DEFAULT_BLUR_RADIUS
from imageconv.errors import TransformError
from imageconv.models import FitMode, ResizeSpec
from imageconv.pipeline import TransformEngine, build_plan
from imageconv.pipeline.processor import STEP_ORDER, plan_steps

from conftest import BLUE, RED, encode, is_close, split_image


class RecordingCodec(PillowCodec):
    """Records the order primitives are called in."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def _apply(self, asset, name, **params):
        self.calls.append(name)
        return super()._apply(asset, name, **params)


class FailingCodec(PillowCodec):
    def sharpen(self, asset):
        raise RuntimeError("kernel exploded")


def all_flags_plan():
    return build_plan(
        {
            "width": 20,
            "rotate": 180,
            "flip": True,
            "flop": True,
            "grayscale": True,
            "blur": True,
            "sharpen": True,
            "normalize": True,
        },
        "process",
    )


def test_plan_steps_follow_fixed_order():
    steps = plan_steps(all_flags_plan())
    assert [s.name for s in steps] == list(STEP_ORDER)
    assert steps[4].params == {"radius": DEFAULT_BLUR_RADIUS}


def test_zero_rotation_is_skipped():
    plan = build_plan({"rotate": 0, "blur": "2"}, "process")
    assert [s.name for s in plan_steps(plan)] == ["blur"]


def test_engine_applies_steps_in_order(png_bytes):
    codec = RecordingCodec()
    asset = codec.decode(png_bytes)
    result = TransformEngine(codec).apply(asset, all_flags_plan())

    assert codec.calls == list(STEP_ORDER)
    assert (result.width, result.height) == (20, 20)
    assert result.space == "b-w"


def test_engine_leaves_input_untouched(codec, png_bytes):
    asset = codec.decode(png_bytes)
    pixels = asset.image.tobytes()
    TransformEngine(codec).apply(asset, all_flags_plan())
    assert asset.image.tobytes() == pixels
    assert (asset.width, asset.height) == (300, 300)


def test_empty_plan_returns_same_asset(codec, png_bytes):
    asset = codec.decode(png_bytes)
    assert TransformEngine(codec).apply(asset, build_plan({}, "compress")) is asset


def test_rotation_happens_before_resize(codec):
    # 200x100, red left half; after a clockwise turn red is on top
    asset = codec.decode(encode(split_image((200, 100))))
    plan = build_plan({"rotate": 90, "width": 50, "height": 100, "fit": "cover"}, "process")
    result = TransformEngine(codec).apply(asset, plan)

    assert (result.width, result.height) == (50, 100)
    assert is_close(result.image.getpixel((25, 10)), RED)
    assert is_close(result.image.getpixel((25, 90)), BLUE)


def test_primitive_failure_becomes_transform_error(png_bytes):
    codec = FailingCodec()
    plan = build_plan({"sharpen": True}, "process")
    with pytest.raises(TransformError, match="sharpen failed"):
        TransformEngine(codec).apply(codec.decode(png_bytes), plan)


def test_degenerate_resize_is_transform_error(codec, png_bytes):
    plan = build_plan({"width": 0, "height": 10, "fit": "fill"}, "resize")
    assert plan.resize == ResizeSpec(width=0, height=10, fit=FitMode.FILL)
    with pytest.raises(TransformError):
        TransformEngine(codec).apply(codec.decode(png_bytes), plan)
