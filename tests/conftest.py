"""Shared fixtures: in-memory test images and fresh codec/pipeline instances."""

import io

import numpy as np
import pytest
from PIL import Image, features

from imageconv.codec import PillowCodec
from imageconv.pipeline import ImagePipeline

RED = (255, 0, 0)
BLUE = (0, 0, 255)

requires_avif = pytest.mark.skipif(
    not features.check("avif"), reason="Pillow built without AVIF support"
)


def encode(image: Image.Image, fmt: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def noise_image(size=(100, 50), mode="RGB", seed=0) -> Image.Image:
    """Random pixels, so encoders produce realistic sizes."""
    width, height = size
    channels = len(mode)
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, (height, width, channels), dtype=np.uint8)
    if channels == 1:
        arr = arr[:, :, 0]
    return Image.fromarray(arr)


def split_image(size=(200, 100), left=RED, right=BLUE, mode="RGB") -> Image.Image:
    """Left half one color, right half another."""
    width, height = size
    image = Image.new(mode, size, right)
    image.paste(Image.new(mode, (width // 2, height), left), (0, 0))
    return image


def stacked_image(size=(100, 200), top=RED, bottom=BLUE) -> Image.Image:
    """Top half one color, bottom half another."""
    width, height = size
    image = Image.new("RGB", size, bottom)
    image.paste(Image.new("RGB", (width, height // 2), top), (0, 0))
    return image


def is_close(pixel, expected, tolerance=40) -> bool:
    return all(abs(a - b) <= tolerance for a, b in zip(pixel, expected))


@pytest.fixture
def codec():
    """Fresh codec per test so caches never leak between tests."""
    return PillowCodec(cache_size=10, concurrency=2)


@pytest.fixture
def pipeline(codec):
    return ImagePipeline(codec)


@pytest.fixture
def jpeg_bytes():
    """A 100x50 JPEG."""
    return encode(noise_image((100, 50)), "JPEG", quality=95)


@pytest.fixture
def png_bytes():
    """A 300x300 PNG."""
    return encode(noise_image((300, 300), seed=1), "PNG")


@pytest.fixture
def text_bytes():
    return b"This is plain text, not an image.\n" * 10
