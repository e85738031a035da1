"""Error types raised by the image pipeline."""


class ImageConvError(Exception):
    """Base class for all pipeline errors."""

    kind = "error"


class InvalidInput(ImageConvError):
    """Input bytes do not decode as a supported image."""

    kind = "invalid_input"


class InvalidRequest(ImageConvError):
    """Requested operations are structurally invalid."""

    kind = "invalid_request"


class TransformError(ImageConvError):
    """A requested operation cannot be applied to the image."""

    kind = "transform_error"


class EncodeError(ImageConvError):
    """The codec failed to encode the final image."""

    kind = "encode_error"
