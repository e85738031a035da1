"""Pixel-level primitives backing the Pillow codec."""

from typing import Protocol
import logging

import cv2
import numpy as np
from PIL import Image, ImageFilter as PILFilter

from ..models import ResizeSpec
from .geometry import compute_layout

logger = logging.getLogger(__name__)

DEFAULT_BLUR_RADIUS = 3.0

# Mild 3x3 sharpening kernel, fixed parameters
SHARPEN_KERNEL = np.array(
    [[-1, -1, -1], [-1, 32, -1], [-1, -1, -1]],
    dtype=np.float32,
) / 24.0


class ImageFilter(Protocol):
    """Protocol for image primitives."""

    name: str

    def apply(self, image: Image.Image) -> Image.Image:
        """Apply the primitive and return a new image."""
        ...

    def describe(self) -> str:
        """Stable description used as a history entry."""
        ...


def split_alpha(image: Image.Image) -> tuple[np.ndarray, np.ndarray | None]:
    """Split an L/LA/RGB/RGBA image into color samples and an optional alpha plane."""
    arr = np.array(image)
    if image.mode == "LA":
        return np.ascontiguousarray(arr[:, :, 0]), arr[:, :, 1]
    if image.mode == "RGBA":
        return np.ascontiguousarray(arr[:, :, :3]), arr[:, :, 3]
    return arr, None


def merge_alpha(color: np.ndarray, alpha: np.ndarray | None) -> Image.Image:
    """Inverse of split_alpha."""
    if alpha is None:
        return Image.fromarray(color)
    return Image.fromarray(np.dstack([color, alpha]))


class RotateFilter:
    """Rotate clockwise by a multiple of 90 degrees."""

    name = "rotate"

    _TRANSPOSE = {
        90: Image.Transpose.ROTATE_270,
        180: Image.Transpose.ROTATE_180,
        270: Image.Transpose.ROTATE_90,
    }

    def __init__(self, degrees: int = 90):
        if degrees % 90 != 0:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
        self.degrees = degrees % 360

    def apply(self, image: Image.Image) -> Image.Image:
        if self.degrees == 0:
            return image.copy()
        return image.transpose(self._TRANSPOSE[self.degrees])

    def describe(self) -> str:
        return f"rotate:{self.degrees}"


class FlipFilter:
    """Mirror vertically (top becomes bottom)."""

    name = "flip"

    def apply(self, image: Image.Image) -> Image.Image:
        return image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

    def describe(self) -> str:
        return self.name


class FlopFilter:
    """Mirror horizontally (left becomes right)."""

    name = "flop"

    def apply(self, image: Image.Image) -> Image.Image:
        return image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)

    def describe(self) -> str:
        return self.name


class GrayscaleFilter:
    """Convert image to a single luminance channel, keeping alpha."""

    name = "grayscale"

    def apply(self, image: Image.Image) -> Image.Image:
        color, alpha = split_alpha(image)
        if color.ndim == 2:
            # Already grayscale
            return merge_alpha(color.copy(), alpha)
        gray = cv2.cvtColor(color, cv2.COLOR_RGB2GRAY)
        return merge_alpha(gray, alpha)

    def describe(self) -> str:
        return self.name


class BlurFilter:
    """Gaussian blur with the given radius (sigma)."""

    name = "blur"

    def __init__(self, radius: float = DEFAULT_BLUR_RADIUS):
        if radius <= 0:
            raise ValueError(f"Blur radius must be positive, got {radius}")
        self.radius = float(radius)

    def apply(self, image: Image.Image) -> Image.Image:
        return image.filter(PILFilter.GaussianBlur(self.radius))

    def describe(self) -> str:
        return f"blur:{self.radius!r}"


class SharpenFilter:
    """Apply the fixed sharpening kernel to color channels."""

    name = "sharpen"

    def apply(self, image: Image.Image) -> Image.Image:
        color, alpha = split_alpha(image)
        sharpened = cv2.filter2D(color, -1, SHARPEN_KERNEL)
        return merge_alpha(sharpened, alpha)

    def describe(self) -> str:
        return self.name


class NormalizeFilter:
    """
    Stretch luminance to the full dynamic range.

    The 1st and 99th luminance percentiles are mapped to 0 and 255. Color
    images are stretched on the L channel of CIELAB so hue is preserved.
    """

    name = "normalize"

    def __init__(self, low: float = 1.0, high: float = 99.0):
        self.low = low
        self.high = high

    def _stretch(self, channel: np.ndarray) -> np.ndarray | None:
        lo, hi = np.percentile(channel, (self.low, self.high))
        if hi <= lo:
            return None
        stretched = (channel.astype(np.float32) - lo) * (255.0 / (hi - lo))
        return np.clip(np.rint(stretched), 0, 255).astype(np.uint8)

    def apply(self, image: Image.Image) -> Image.Image:
        color, alpha = split_alpha(image)

        if color.ndim == 2:
            stretched = self._stretch(color)
            if stretched is None:
                logger.debug("Flat luminance, normalize is a no-op")
                return image.copy()
            return merge_alpha(stretched, alpha)

        lab = cv2.cvtColor(color, cv2.COLOR_RGB2LAB)
        lightness = self._stretch(lab[:, :, 0])
        if lightness is None:
            logger.debug("Flat luminance, normalize is a no-op")
            return image.copy()
        lab[:, :, 0] = lightness
        return merge_alpha(cv2.cvtColor(lab, cv2.COLOR_LAB2RGB), alpha)

    def describe(self) -> str:
        return self.name


class ResizeFilter:
    """Resample to a target box following the requested fit mode."""

    name = "resize"

    def __init__(self, spec: ResizeSpec):
        self.spec = spec

    def apply(self, image: Image.Image) -> Image.Image:
        layout = compute_layout(image.width, image.height, self.spec)
        logger.debug("Resize layout for %dx%d: %s", image.width, image.height, layout)

        result = image
        if layout.scaled != image.size:
            result = image.resize(layout.scaled, Image.Resampling.LANCZOS)

        if layout.crops:
            left, top = layout.offset
            width, height = layout.canvas
            result = result.crop((left, top, left + width, top + height))
        elif layout.pads:
            result = self._pad(result, layout.canvas, layout.offset)

        if result is image:
            result = image.copy()
        return result

    def _pad(self, image: Image.Image, size: tuple[int, int], offset: tuple[int, int]) -> Image.Image:
        r, g, b, a = self.spec.background
        if image.mode in ("L", "LA"):
            mode = "LA"
            fill = (round(0.299 * r + 0.587 * g + 0.114 * b), a)
        else:
            mode = "RGBA"
            fill = (r, g, b, a)
        canvas = Image.new(mode, size, fill)
        canvas.paste(image.convert(mode), offset)
        return canvas

    def describe(self) -> str:
        return self.spec.describe()


# Registry of available primitives
FILTER_REGISTRY: dict[str, type] = {
    "rotate": RotateFilter,
    "flip": FlipFilter,
    "flop": FlopFilter,
    "grayscale": GrayscaleFilter,
    "blur": BlurFilter,
    "sharpen": SharpenFilter,
    "normalize": NormalizeFilter,
    "resize": ResizeFilter,
}


def create_filter(name: str, **params) -> ImageFilter:
    """
    Create a filter instance by name.

    Args:
        name: Filter name from registry
        **params: Parameters to pass to filter constructor

    Returns:
        Filter instance

    Raises:
        ValueError: If filter name not found
    """
    if name not in FILTER_REGISTRY:
        raise ValueError(f"Unknown filter: {name}. Available: {list(FILTER_REGISTRY.keys())}")

    filter_class = FILTER_REGISTRY[name]
    return filter_class(**params)
