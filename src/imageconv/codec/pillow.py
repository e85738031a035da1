"""Codec provider backed by Pillow."""

import hashlib
import io
import logging
import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import EncodeError, InvalidInput
from ..models import DECODE_FORMATS, FORMAT_ALIASES, ImageAsset, ImageMetadata, ResizeSpec, describe_mode
from .filters import create_filter

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 100
DEFAULT_CONCURRENCY = 2

SAVE_FORMATS = {
    "avif": "AVIF",
    "webp": "WEBP",
    "jpeg": "JPEG",
    "png": "PNG",
}

# Modes each encoder accepts directly; anything else is converted first
_ENCODER_MODES = {
    "avif": {"L": "RGB", "LA": "RGBA"},
    "webp": {"L": "RGB", "LA": "RGBA"},
    "jpeg": {"LA": "L", "RGBA": "RGB"},
    "png": {},
}


class ResultCache:
    """Thread-safe LRU cache for decode and encode results."""

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE):
        self.max_entries = max_entries
        self._entries: OrderedDict[Hashable, Any] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            if self.max_entries <= 0:
                return
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._evict()

    def resize(self, max_entries: int) -> None:
        with self._lock:
            self.max_entries = max_entries
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        while len(self._entries) > max(self.max_entries, 0):
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


def to_working_mode(image: Image.Image) -> Image.Image:
    """
    Convert a decoded image to one of L, LA, RGB or RGBA.

    Primitives only handle these four modes. 16-bit and float samples are
    scaled down to 8 bits.
    """
    mode = image.mode
    if mode in ("L", "LA", "RGB", "RGBA"):
        return image
    if mode == "1":
        return image.convert("L")
    if mode == "La":
        return image.convert("LA")
    if mode == "F":
        arr = np.asarray(image).clip(0, 255)
        return Image.fromarray(arr.astype(np.uint8))
    if mode == "I" or mode.startswith("I;16"):
        arr = np.asarray(image).astype(np.int64).clip(0, 65535) >> 8
        return Image.fromarray(arr.astype(np.uint8))
    return image.convert("RGBA" if image.has_transparency_data else "RGB")


def _density(info: dict) -> int | None:
    dpi = info.get("dpi")
    if not dpi:
        return None
    try:
        return round(float(dpi[0]))
    except (TypeError, ValueError, IndexError):
        return None


def _save_options(fmt: str, params: dict[str, Any]) -> dict[str, Any]:
    """Translate resolved format parameters into Pillow save() keyword arguments."""
    if fmt == "avif":
        return {
            "quality": params["quality"],
            # libavif speed runs the opposite way to effort
            "speed": max(0, min(10, 9 - params["effort"])),
            "subsampling": params["chroma_subsampling"],
        }
    if fmt == "webp":
        return {
            "quality": params["quality"],
            "method": max(0, min(6, params["effort"])),
        }
    if fmt == "jpeg":
        return {
            "quality": params["quality"],
            "progressive": params["progressive"],
            "optimize": params["optimize_coding"],
        }
    if fmt == "png":
        return {"compress_level": params["compression_level"]}
    raise EncodeError(f"Unsupported output format: {fmt}")


class PillowCodec:
    """
    Codec provider using Pillow for decode/encode and Pillow/OpenCV primitives.

    Every decode, encode and primitive runs under a bounded semaphore so at
    most `concurrency` codec operations run at once. Decode results are cached
    by content digest and encode results by asset history.
    """

    def __init__(
        self,
        cache_size: int = DEFAULT_CACHE_SIZE,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self._cache = ResultCache(cache_size)
        self._slots = threading.BoundedSemaphore(concurrency)
        self.concurrency = concurrency

    @property
    def cache_size(self) -> int:
        return self._cache.max_entries

    def set_cache(self, max_entries: int) -> None:
        """Set the maximum number of cached decode/encode results (0 disables)."""
        if max_entries < 0:
            raise ValueError(f"Cache size must not be negative, got {max_entries}")
        self._cache.resize(max_entries)
        logger.debug("Codec cache size set to %d", max_entries)

    def set_concurrency(self, max_parallel_ops: int) -> None:
        """Set the maximum number of simultaneous codec operations."""
        if max_parallel_ops < 1:
            raise ValueError(f"Concurrency must be at least 1, got {max_parallel_ops}")
        self._slots = threading.BoundedSemaphore(max_parallel_ops)
        self.concurrency = max_parallel_ops
        logger.debug("Codec concurrency set to %d", max_parallel_ops)

    def decode(self, data: bytes) -> ImageAsset:
        """
        Decode bytes into an ImageAsset.

        Raises:
            InvalidInput: If the bytes are empty, corrupt, or not a supported format
        """
        if not data:
            raise InvalidInput("Input buffer is empty")

        digest = hashlib.sha256(data).hexdigest()
        key = ("decode", digest)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Decode cache hit for %s", digest[:12])
            return cached

        with self._slots:
            asset = self._decode(data, digest)

        self._cache.put(key, asset)
        return asset

    def _decode(self, data: bytes, digest: str) -> ImageAsset:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except UnidentifiedImageError as e:
            raise InvalidInput("Input buffer contains unsupported image format") from e
        except Exception as e:
            raise InvalidInput(f"Input buffer has corrupt image data: {e}") from e

        fmt = (image.format or "").lower()
        fmt = FORMAT_ALIASES.get(fmt, fmt)
        if fmt not in DECODE_FORMATS:
            raise InvalidInput(f"Unsupported image format: {fmt or 'unknown'}")

        space, depth = describe_mode(image.mode)
        working = to_working_mode(image)

        asset = ImageAsset(
            image=working,
            format=fmt,
            width=working.width,
            height=working.height,
            space=space,
            channels=len(working.getbands()),
            depth=depth,
            has_alpha=working.mode in ("LA", "RGBA"),
            has_profile=bool(image.info.get("icc_profile")),
            density=_density(image.info),
            history=(digest,),
        )
        logger.debug("Decoded %s %dx%d mode=%s", fmt, asset.width, asset.height, image.mode)
        return asset

    def encode(self, asset: ImageAsset, fmt: str, params: dict[str, Any]) -> bytes:
        """
        Encode an asset to the given output format.

        Raises:
            EncodeError: If the format is unsupported or the encoder fails
        """
        if fmt not in SAVE_FORMATS:
            raise EncodeError(f"Unsupported output format: {fmt}")

        key = ("encode", asset.history, fmt, tuple(sorted(params.items())))
        if asset.history:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("Encode cache hit for %s", fmt)
                return cached

        with self._slots:
            data = self._encode(asset.image, fmt, params)

        if asset.history:
            self._cache.put(key, data)
        return data

    def _encode(self, image: Image.Image, fmt: str, params: dict[str, Any]) -> bytes:
        target_mode = _ENCODER_MODES[fmt].get(image.mode)
        if target_mode:
            image = image.convert(target_mode)

        buffer = io.BytesIO()
        try:
            image.save(buffer, format=SAVE_FORMATS[fmt], **_save_options(fmt, params))
        except KeyError as e:
            raise EncodeError(f"No {fmt} encoder available in this Pillow build") from e
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {fmt}: {e}") from e

        data = buffer.getvalue()
        logger.debug("Encoded %s: %d bytes", fmt, len(data))
        return data

    def read_metadata(self, data: bytes) -> ImageMetadata:
        """
        Describe encoded bytes from their header without decoding the pixels.

        Raises:
            InvalidInput: If the bytes are not a readable image
        """
        try:
            with Image.open(io.BytesIO(data)) as image:
                fmt = (image.format or "").lower()
                space, depth = describe_mode(image.mode)
                return ImageMetadata(
                    format=FORMAT_ALIASES.get(fmt, fmt),
                    width=image.width,
                    height=image.height,
                    space=space,
                    channels=len(image.getbands()),
                    depth=depth,
                    density=_density(image.info),
                    has_profile=bool(image.info.get("icc_profile")),
                    has_alpha=image.has_transparency_data,
                    size=len(data),
                )
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidInput(f"Cannot read image header: {e}") from e

    def _apply(self, asset: ImageAsset, name: str, **params) -> ImageAsset:
        image_filter = create_filter(name, **params)
        with self._slots:
            image = image_filter.apply(asset.image)
        logger.debug("Applied primitive: %s", image_filter.describe())
        return asset.derive(image, image_filter.describe())

    def rotate(self, asset: ImageAsset, degrees: int) -> ImageAsset:
        return self._apply(asset, "rotate", degrees=degrees)

    def flip(self, asset: ImageAsset) -> ImageAsset:
        return self._apply(asset, "flip")

    def flop(self, asset: ImageAsset) -> ImageAsset:
        return self._apply(asset, "flop")

    def grayscale(self, asset: ImageAsset) -> ImageAsset:
        return self._apply(asset, "grayscale")

    def blur(self, asset: ImageAsset, radius: float) -> ImageAsset:
        return self._apply(asset, "blur", radius=radius)

    def sharpen(self, asset: ImageAsset) -> ImageAsset:
        return self._apply(asset, "sharpen")

    def normalize(self, asset: ImageAsset) -> ImageAsset:
        return self._apply(asset, "normalize")

    def resize(self, asset: ImageAsset, spec: ResizeSpec) -> ImageAsset:
        return self._apply(asset, "resize", spec=spec)
