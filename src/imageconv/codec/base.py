"""Contract the pipeline is written against."""

from typing import Any, Protocol

from ..models import ImageAsset, ImageMetadata, ResizeSpec


class CodecProvider(Protocol):
    """
    Protocol for codec backends.

    A codec is responsible for:
    - Decoding bytes into an ImageAsset (raising InvalidInput on failure)
    - Reading metadata of encoded bytes from their header
    - Encoding an ImageAsset into a target format (raising EncodeError)
    - Primitive transforms, one per pipeline step, each returning a new asset
    - Process-wide cache and concurrency limits, set once at startup
    """

    def decode(self, data: bytes) -> ImageAsset:
        ...

    def encode(self, asset: ImageAsset, fmt: str, params: dict[str, Any]) -> bytes:
        ...

    def read_metadata(self, data: bytes) -> ImageMetadata:
        ...

    def rotate(self, asset: ImageAsset, degrees: int) -> ImageAsset:
        ...

    def flip(self, asset: ImageAsset) -> ImageAsset:
        ...

    def flop(self, asset: ImageAsset) -> ImageAsset:
        ...

    def grayscale(self, asset: ImageAsset) -> ImageAsset:
        ...

    def blur(self, asset: ImageAsset, radius: float) -> ImageAsset:
        ...

    def sharpen(self, asset: ImageAsset) -> ImageAsset:
        ...

    def normalize(self, asset: ImageAsset) -> ImageAsset:
        ...

    def resize(self, asset: ImageAsset, spec: ResizeSpec) -> ImageAsset:
        ...

    def set_cache(self, max_entries: int) -> None:
        ...

    def set_concurrency(self, max_parallel_ops: int) -> None:
        ...
