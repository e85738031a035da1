"""Data models shared by the codec and the pipeline."""

from dataclasses import dataclass, field, replace
from enum import Enum

from PIL import Image


class OutputFormat(str, Enum):
    """Formats the pipeline can encode to."""

    AVIF = "avif"
    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else self.value


# Source-only formats are decoded but never written
DECODE_FORMATS = frozenset({f.value for f in OutputFormat} | {"tiff", "gif"})

FORMAT_ALIASES = {"jpg": "jpeg", "tif": "tiff"}


class FitMode(str, Enum):
    """How a source image maps onto a target box."""

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


class Anchor(str, Enum):
    """Crop and pad anchor for cover/contain resizes."""

    CENTER = "center"
    NORTH = "north"
    NORTHEAST = "northeast"
    EAST = "east"
    SOUTHEAST = "southeast"
    SOUTH = "south"
    SOUTHWEST = "southwest"
    WEST = "west"
    NORTHWEST = "northwest"

    @property
    def centering(self) -> tuple[float, float]:
        """Horizontal and vertical position of the kept region, 0.0 to 1.0."""
        return _CENTERING[self]


_CENTERING = {
    Anchor.CENTER: (0.5, 0.5),
    Anchor.NORTH: (0.5, 0.0),
    Anchor.NORTHEAST: (1.0, 0.0),
    Anchor.EAST: (1.0, 0.5),
    Anchor.SOUTHEAST: (1.0, 1.0),
    Anchor.SOUTH: (0.5, 1.0),
    Anchor.SOUTHWEST: (0.0, 1.0),
    Anchor.WEST: (0.0, 0.5),
    Anchor.NORTHWEST: (0.0, 0.0),
}

ANCHOR_ALIASES = {
    "centre": "center",
    "top": "north",
    "right": "east",
    "bottom": "south",
    "left": "west",
}

# Transparent white, used to pad `contain` resizes
DEFAULT_BACKGROUND = (255, 255, 255, 0)


@dataclass(frozen=True)
class ResizeSpec:
    """Requested resize geometry. Either dimension may be absent, not both."""

    width: int | None = None
    height: int | None = None
    fit: FitMode = FitMode.COVER
    position: Anchor = Anchor.CENTER
    allow_enlargement: bool = False
    background: tuple[int, int, int, int] = DEFAULT_BACKGROUND

    def describe(self) -> str:
        return (
            f"resize:{self.width}x{self.height}:{self.fit.value}:"
            f"{self.position.value}:{int(self.allow_enlargement)}:"
            f"{','.join(str(c) for c in self.background)}"
        )


# Pillow mode -> (color space, sample depth)
_MODE_INFO: dict[str, tuple[str, str]] = {
    "1": ("b-w", "uchar"),
    "L": ("b-w", "uchar"),
    "LA": ("b-w", "uchar"),
    "P": ("srgb", "uchar"),
    "PA": ("srgb", "uchar"),
    "RGB": ("srgb", "uchar"),
    "RGBA": ("srgb", "uchar"),
    "RGBX": ("srgb", "uchar"),
    "YCbCr": ("srgb", "uchar"),
    "CMYK": ("cmyk", "uchar"),
    "LAB": ("lab", "uchar"),
    "HSV": ("hsv", "uchar"),
    "I": ("b-w", "int"),
    "I;16": ("grey16", "ushort"),
    "I;16B": ("grey16", "ushort"),
    "I;16L": ("grey16", "ushort"),
    "I;16N": ("grey16", "ushort"),
    "F": ("b-w", "float"),
}


def describe_mode(mode: str) -> tuple[str, str]:
    """Return (color space, sample depth) for a Pillow image mode."""
    return _MODE_INFO.get(mode, ("srgb", "uchar"))


@dataclass(frozen=True)
class ImageMetadata:
    """Serializable description of an image."""

    format: str
    width: int
    height: int
    space: str
    channels: int
    depth: str
    density: int | None
    has_profile: bool
    has_alpha: bool
    size: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "format": self.format,
            "width": self.width,
            "height": self.height,
            "space": self.space,
            "channels": self.channels,
            "depth": self.depth,
            "density": self.density,
            "hasProfile": self.has_profile,
            "hasAlpha": self.has_alpha,
            "size": self.size,
        }


@dataclass(frozen=True)
class ImageAsset:
    """
    A decoded raster image plus its metadata.

    Assets are never mutated. Every primitive returns a new asset whose
    `history` extends the previous one, so the history identifies the
    pixels without hashing them.
    """

    image: Image.Image = field(repr=False, compare=False)
    format: str
    width: int
    height: int
    space: str
    channels: int
    depth: str
    has_alpha: bool
    has_profile: bool = False
    density: int | None = None
    history: tuple[str, ...] = ()

    def derive(self, image: Image.Image, step: str) -> "ImageAsset":
        """Wrap the output of a primitive in a new asset."""
        space, depth = describe_mode(image.mode)
        return replace(
            self,
            image=image,
            width=image.width,
            height=image.height,
            space=space,
            channels=len(image.getbands()),
            depth=depth,
            has_alpha=image.mode in ("LA", "RGBA"),
            history=self.history + (step,),
        )

    def with_format(self, fmt: str) -> "ImageAsset":
        return replace(self, format=fmt)

    def metadata(self, size: int | None = None) -> ImageMetadata:
        return ImageMetadata(
            format=self.format,
            width=self.width,
            height=self.height,
            space=self.space,
            channels=self.channels,
            depth=self.depth,
            density=self.density,
            has_profile=self.has_profile,
            has_alpha=self.has_alpha,
            size=size,
        )


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of probing input bytes. Failure is a normal outcome."""

    valid: bool
    format: str | None = None
    width: int | None = None
    height: int | None = None
    size: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if not self.valid:
            return {"valid": False, "error": self.error}
        return {
            "valid": True,
            "format": self.format,
            "width": self.width,
            "height": self.height,
            "size": self.size,
        }


@dataclass(frozen=True)
class PipelineResult:
    """Output of a completed pipeline run."""

    data: bytes = field(repr=False)
    format: OutputFormat
    size: int
    original_size: int
    compression_ratio: float
    metadata: ImageMetadata

    @property
    def width(self) -> int:
        return self.metadata.width

    @property
    def height(self) -> int:
        return self.metadata.height
