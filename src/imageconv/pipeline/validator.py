"""Input validation that reports failure as an outcome."""

import logging

from ..codec import CodecProvider
from ..errors import ImageConvError
from ..models import ValidationOutcome

logger = logging.getLogger(__name__)


def validate(codec: CodecProvider, data: bytes) -> ValidationOutcome:
    """
    Check that bytes decode to a supported image.

    Malformed uploads are expected client input, so failure is returned as
    an outcome instead of raised.

    Args:
        codec: Codec used to decode
        data: Raw image bytes

    Returns:
        ValidationOutcome with format and dimensions, or the decoder's error
    """
    try:
        asset = codec.decode(data)
    except ImageConvError as e:
        logger.debug("Validation failed: %s", e)
        return ValidationOutcome(valid=False, error=str(e))
    except Exception as e:
        logger.warning("Decoder failed during validation: %s", e)
        return ValidationOutcome(valid=False, error=f"Failed to decode image: {e}")

    return ValidationOutcome(
        valid=True,
        format=asset.format,
        width=asset.width,
        height=asset.height,
        size=len(data),
    )
