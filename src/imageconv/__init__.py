"""Image conversion pipeline with an HTTP API."""

__version__ = "1.0.0"

from .errors import EncodeError, ImageConvError, InvalidInput, InvalidRequest, TransformError
from .pipeline import ImagePipeline

__all__ = [
    "EncodeError",
    "ImageConvError",
    "ImagePipeline",
    "InvalidInput",
    "InvalidRequest",
    "TransformError",
    "__version__",
]
