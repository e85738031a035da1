"""Compression metrics and result assembly."""

from ..models import ImageMetadata, OutputFormat, PipelineResult


def compression_ratio(original_size: int, output_size: int) -> float:
    """Percentage size reduction, two decimals. Negative when the output grew."""
    return round((1 - output_size / original_size) * 100, 2)


def summarize(
    original: bytes,
    encoded: bytes,
    output_metadata: ImageMetadata,
    output_format: OutputFormat,
) -> PipelineResult:
    """
    Package encoded bytes with sizes, ratio and final metadata.

    `output_metadata` must describe the encoded bytes, not the asset they
    were encoded from, since encoders may drop or add channels.
    """
    return PipelineResult(
        data=encoded,
        format=output_format,
        size=len(encoded),
        original_size=len(original),
        compression_ratio=compression_ratio(len(original), len(encoded)),
        metadata=output_metadata,
    )
