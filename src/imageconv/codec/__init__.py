"""Codec providers and the process-wide default codec."""

import logging

from .base import CodecProvider
from .pillow import DEFAULT_CACHE_SIZE, DEFAULT_CONCURRENCY, PillowCodec

logger = logging.getLogger(__name__)

__all__ = [
    "CodecProvider",
    "PillowCodec",
    "configure_default_codec",
    "get_default_codec",
]

# Module-level default codec instance
_default_codec: PillowCodec | None = None
_configured = False


def get_default_codec() -> PillowCodec:
    """
    Get or create the process-wide codec.

    Returns:
        The default PillowCodec instance
    """
    global _default_codec
    if _default_codec is None:
        _default_codec = PillowCodec(DEFAULT_CACHE_SIZE, DEFAULT_CONCURRENCY)
    return _default_codec


def configure_default_codec(
    cache_size: int = DEFAULT_CACHE_SIZE,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> PillowCodec:
    """
    Apply cache and concurrency limits to the process-wide codec.

    Only the first call takes effect; the limits are never changed once
    requests may be in flight.

    Args:
        cache_size: Maximum cached decode/encode results
        concurrency: Maximum simultaneous codec operations

    Returns:
        The default PillowCodec instance
    """
    global _configured
    codec = get_default_codec()
    if _configured:
        logger.warning(
            "Codec already configured (cache=%d, concurrency=%d); ignoring new limits",
            codec.cache_size,
            codec.concurrency,
        )
        return codec

    codec.set_cache(cache_size)
    codec.set_concurrency(concurrency)
    _configured = True
    logger.info("Configured codec: cache=%d, concurrency=%d", cache_size, concurrency)
    return codec
