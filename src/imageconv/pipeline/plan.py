"""Parsing request options into a normalized operation plan."""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Mapping

from ..errors import InvalidRequest
from ..models import (
    ANCHOR_ALIASES,
    FORMAT_ALIASES,
    Anchor,
    FitMode,
    OutputFormat,
    ResizeSpec,
)

logger = logging.getLogger(__name__)

ALLOWED_ROTATIONS = (0, 90, 180, 270)
TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


class OperationKind(str, Enum):
    """Public pipeline operations."""

    CONVERT = "convert"
    COMPRESS = "compress"
    RESIZE = "resize"
    PROCESS = "process"
    METADATA = "metadata"


@dataclass(frozen=True)
class OperationPlan:
    """
    Normalized transformation intent for one request.

    `target_format` of None means the source format is kept. `quality` of
    None defers to the encoder's per-format default. `blur` is None, True
    (default radius) or a positive radius.
    """

    kind: OperationKind
    target_format: OutputFormat | None = None
    quality: int | None = None
    resize: ResizeSpec | None = None
    rotate: int | None = None
    flip: bool = False
    flop: bool = False
    grayscale: bool = False
    blur: bool | float | None = None
    sharpen: bool = False
    normalize: bool = False

    @property
    def has_transforms(self) -> bool:
        return bool(
            self.rotate
            or self.flip
            or self.flop
            or self.grayscale
            or self.blur
            or self.sharpen
            or self.normalize
            or self.resize
        )


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def coerce_int(value: Any, name: str) -> int | None:
    """Coerce an int or numeric-looking string; absent values stay None."""
    if _is_absent(value):
        return None
    if isinstance(value, bool):
        raise InvalidRequest(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidRequest(f"{name} must be an integer, got {value!r}")


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def parse_format(value: Any) -> OutputFormat | None:
    if _is_absent(value):
        return None
    name = str(value).strip().lower()
    name = FORMAT_ALIASES.get(name, name)
    try:
        return OutputFormat(name)
    except ValueError:
        raise InvalidRequest(
            f"Unsupported output format: {value}. "
            f"Available: {[f.value for f in OutputFormat]}"
        ) from None


def parse_quality(value: Any) -> int | None:
    quality = coerce_int(value, "quality")
    if quality is not None and not 1 <= quality <= 100:
        raise InvalidRequest(f"quality must be between 1 and 100, got {quality}")
    return quality


def parse_rotate(value: Any) -> int | None:
    degrees = coerce_int(value, "rotate")
    if degrees is not None and degrees not in ALLOWED_ROTATIONS:
        raise InvalidRequest(f"rotate must be one of {list(ALLOWED_ROTATIONS)}, got {degrees}")
    return degrees


def parse_blur(value: Any) -> bool | float | None:
    """Blur is either a flag (default radius) or a positive radius."""
    if _is_absent(value) or value is False:
        return None
    if value is True:
        return True
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS - {"1"}:
            return True
        if text in FALSE_STRINGS - {"0"}:
            return None
        try:
            value = float(text)
        except ValueError:
            raise InvalidRequest(f"blur must be a positive number or a boolean, got {value!r}") from None
    if isinstance(value, (int, float)):
        if value <= 0:
            raise InvalidRequest(f"blur radius must be positive, got {value}")
        return float(value)
    raise InvalidRequest(f"blur must be a positive number or a boolean, got {value!r}")


def parse_fit(value: Any) -> FitMode:
    if _is_absent(value):
        return FitMode.COVER
    try:
        return FitMode(str(value).strip().lower())
    except ValueError:
        raise InvalidRequest(
            f"Unknown fit: {value}. Available: {[f.value for f in FitMode]}"
        ) from None


def parse_position(value: Any) -> Anchor:
    if _is_absent(value):
        return Anchor.CENTER
    name = str(value).strip().lower()
    name = ANCHOR_ALIASES.get(name, name)
    try:
        return Anchor(name)
    except ValueError:
        raise InvalidRequest(
            f"Unknown position: {value}. Available: {[a.value for a in Anchor]}"
        ) from None


def parse_resize(options: Mapping[str, Any], required: bool = False) -> ResizeSpec | None:
    """
    Parse resize geometry from options.

    Args:
        options: Mapping with width/height/fit/position/allow_enlargement
        required: Reject the request when both dimensions are absent

    Returns:
        ResizeSpec, or None when no dimension was given and none is required

    Raises:
        InvalidRequest: On malformed values, or missing dimensions when required
    """
    width = coerce_int(options.get("width"), "width")
    height = coerce_int(options.get("height"), "height")

    if width is None and height is None:
        if required:
            raise InvalidRequest("Width or height must be specified for resize")
        return None

    for name, dim in (("width", width), ("height", height)):
        if dim is not None and dim < 0:
            raise InvalidRequest(f"{name} must not be negative, got {dim}")

    return ResizeSpec(
        width=width,
        height=height,
        fit=parse_fit(options.get("fit")),
        position=parse_position(options.get("position")),
        allow_enlargement=coerce_bool(options.get("allow_enlargement", False)),
    )


def _sub_options(options: Mapping[str, Any], key: str) -> dict:
    value = options.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidRequest(f"{key} options must be an object")
    return dict(value)


def build_plan(options: Mapping[str, Any] | None, kind: OperationKind | str) -> OperationPlan:
    """
    Build an operation plan from raw request options.

    Unrecognized keys are ignored. Format defaults to avif for convert and
    process; compress and resize keep the source format unless one is given.

    Args:
        options: Raw request parameters (query string values or native types)
        kind: Which public operation the plan is for

    Returns:
        OperationPlan

    Raises:
        InvalidRequest: If the options are structurally invalid
    """
    options = options or {}
    try:
        kind = OperationKind(kind)
    except ValueError:
        raise InvalidRequest(f"Unknown operation: {kind}") from None

    if kind is OperationKind.METADATA:
        return OperationPlan(kind=kind)

    if kind is OperationKind.COMPRESS:
        plan = OperationPlan(
            kind=kind,
            target_format=parse_format(options.get("format")),
            quality=parse_quality(options.get("quality")),
        )

    elif kind is OperationKind.CONVERT:
        plan = OperationPlan(
            kind=kind,
            target_format=parse_format(options.get("format")) or OutputFormat.AVIF,
            quality=parse_quality(options.get("quality")),
            resize=parse_resize(options),
        )

    elif kind is OperationKind.RESIZE:
        plan = OperationPlan(
            kind=kind,
            target_format=parse_format(options.get("format")),
            quality=parse_quality(options.get("quality")),
            resize=parse_resize(options, required=True),
        )

    else:
        # Sub-objects win over flat keys
        geometry = {**options, **_sub_options(options, "resize")}
        output = {**options, **_sub_options(options, "convert")}
        plan = OperationPlan(
            kind=kind,
            target_format=parse_format(output.get("format")) or OutputFormat.AVIF,
            quality=parse_quality(output.get("quality")),
            resize=parse_resize(geometry),
            rotate=parse_rotate(options.get("rotate")),
            flip=coerce_bool(options.get("flip")),
            flop=coerce_bool(options.get("flop")),
            grayscale=coerce_bool(options.get("grayscale")),
            blur=parse_blur(options.get("blur")),
            sharpen=coerce_bool(options.get("sharpen")),
            normalize=coerce_bool(options.get("normalize")),
        )

    logger.debug("Built %s plan: %s", kind.value, plan)
    return plan
