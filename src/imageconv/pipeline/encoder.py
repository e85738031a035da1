"""Final encoding with per-format parameter resolution."""

import logging
from typing import Any

from ..codec import CodecProvider
from ..config import ImageProcessingConfig
from ..errors import EncodeError, ImageConvError
from ..models import ImageAsset, ImageMetadata, OutputFormat

logger = logging.getLogger(__name__)

GLOBAL_DEFAULT_QUALITY = 80

# Built-in parameters per format; configured values override them
FORMAT_DEFAULTS: dict[str, dict[str, Any]] = {
    "avif": {"quality": 60, "effort": 4, "chroma_subsampling": "4:2:0"},
    "webp": {"quality": 80, "effort": 4, "smart_subsample": True},
    "jpeg": {"quality": 85, "progressive": True, "optimize_coding": True},
    "png": {"compression_level": 9, "progressive": True},
}

# Lossless formats ignore quality entirely
LOSSLESS_FORMATS = frozenset({"png"})


def resolve_format_params(
    fmt: OutputFormat | str,
    quality: int | None = None,
    settings: ImageProcessingConfig | None = None,
) -> dict[str, Any]:
    """
    Merge the per-format defaults table with configured and requested values.

    Quality precedence: explicit request, then the configured per-format
    quality, then the configured global default, then the built-in
    per-format quality, then 80.

    Args:
        fmt: Output format
        quality: Requested quality, or None
        settings: Image processing config; built-in defaults when None

    Returns:
        Dict of encoder parameters

    Raises:
        EncodeError: If the format is not an output format
    """
    name = fmt.value if isinstance(fmt, OutputFormat) else str(fmt).lower()
    if name not in FORMAT_DEFAULTS:
        raise EncodeError(f"Unsupported output format: {fmt}")

    builtin = dict(FORMAT_DEFAULTS[name])
    builtin_quality = builtin.pop("quality", None)
    configured = dict(settings.formats.get(name, {})) if settings else {}
    configured_quality = configured.pop("quality", None)
    global_default = settings.default_quality if settings else None

    params = {**builtin, **configured}

    if name not in LOSSLESS_FORMATS:
        candidates = (quality, configured_quality, global_default, builtin_quality, GLOBAL_DEFAULT_QUALITY)
        params["quality"] = next(q for q in candidates if q is not None)

    return params


class Encoder:
    """Serializes assets to an output format through the codec."""

    def __init__(self, codec: CodecProvider, settings: ImageProcessingConfig | None = None):
        self.codec = codec
        self.settings = settings

    def encode(self, asset: ImageAsset, fmt: OutputFormat | str, quality: int | None = None) -> bytes:
        """
        Encode the asset.

        Raises:
            EncodeError: On unsupported format or any codec failure; never retried
        """
        params = resolve_format_params(fmt, quality, self.settings)
        name = fmt.value if isinstance(fmt, OutputFormat) else str(fmt).lower()
        logger.debug("Encoding %s with %s", name, params)

        try:
            return self.codec.encode(asset, name, params)
        except EncodeError:
            raise
        except ImageConvError as e:
            raise EncodeError(str(e)) from e
        except Exception as e:
            logger.error("Encoder for %s failed: %s", name, e)
            raise EncodeError(f"Failed to encode {name}: {e}") from e

    def describe(self, data: bytes) -> ImageMetadata:
        """
        Read the metadata of encoded output from its header.

        Raises:
            EncodeError: If the codec cannot read back what it wrote
        """
        try:
            return self.codec.read_metadata(data)
        except Exception as e:
            logger.error("Encoded output is unreadable: %s", e)
            raise EncodeError(f"Encoded output is unreadable: {e}") from e
