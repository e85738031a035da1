"""Pipeline facade sequencing validate, transform, encode and summarize."""

import logging
from typing import Any, Mapping

from ..codec import CodecProvider, get_default_codec
from ..config import ImageProcessingConfig
from ..errors import ImageConvError, InvalidInput, InvalidRequest
from ..models import ImageAsset, ImageMetadata, OutputFormat, PipelineResult, ValidationOutcome
from .encoder import Encoder
from .metrics import summarize
from .plan import OperationKind, OperationPlan, build_plan
from .processor import TransformEngine
from .validator import validate

logger = logging.getLogger(__name__)


class ImagePipeline:
    """
    Public surface of the image pipeline.

    Each call runs Received -> Validated -> Transformed -> Encoded ->
    Summarized and either returns a complete result or raises one of the
    typed errors in `imageconv.errors`. No partial output is ever returned.
    """

    def __init__(
        self,
        codec: CodecProvider | None = None,
        settings: ImageProcessingConfig | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            codec: Codec provider. If None, uses the process-wide Pillow codec.
            settings: Encoder defaults. If None, uses built-in defaults.
        """
        self.codec = codec or get_default_codec()
        self.settings = settings or ImageProcessingConfig()
        self.engine = TransformEngine(self.codec)
        self.encoder = Encoder(self.codec, self.settings)

    def validate(self, data: bytes) -> ValidationOutcome:
        return validate(self.codec, data)

    def convert(self, data: bytes, options: Mapping[str, Any] | None = None) -> PipelineResult:
        """Re-encode to another format, optionally resizing."""
        return self._run(data, options, OperationKind.CONVERT)

    def compress(self, data: bytes, options: Mapping[str, Any] | None = None) -> PipelineResult:
        """Re-encode with a quality setting, keeping the source format by default."""
        return self._run(data, options, OperationKind.COMPRESS)

    def resize(self, data: bytes, options: Mapping[str, Any] | None = None) -> PipelineResult:
        """Resize, keeping the source format unless one is requested."""
        return self._run(data, options, OperationKind.RESIZE)

    def process(self, data: bytes, options: Mapping[str, Any] | None = None) -> PipelineResult:
        """Apply the full operation set, then encode."""
        return self._run(data, options, OperationKind.PROCESS)

    def metadata(self, data: bytes, options: Mapping[str, Any] | None = None) -> ImageMetadata:
        """
        Describe the decoded image without transforming or encoding it.

        Raises:
            InvalidInput: If the bytes are not a supported image
        """
        asset = self._decode(data)
        return asset.metadata(size=len(data))

    def _decode(self, data: bytes) -> ImageAsset:
        try:
            return self.codec.decode(data)
        except InvalidInput:
            raise
        except ImageConvError as e:
            raise InvalidInput(str(e)) from e
        except Exception as e:
            logger.error("Decoder failed: %s", e)
            raise InvalidInput(f"Failed to decode image: {e}") from e

    def _run(self, data: bytes, options: Mapping[str, Any] | None, kind: OperationKind) -> PipelineResult:
        asset = self._decode(data)
        logger.debug("Validated %s %dx%d (%d bytes)", asset.format, asset.width, asset.height, len(data))

        plan = build_plan(options, kind)
        output_format = resolve_output_format(plan, asset)

        transformed = self.engine.apply(asset, plan)
        encoded = self.encoder.encode(transformed, output_format, plan.quality)
        output_metadata = self.encoder.describe(encoded)

        result = summarize(data, encoded, output_metadata, output_format)
        logger.info(
            "%s: %s %dx%d (%d bytes) -> %s %dx%d (%d bytes, %.2f%%)",
            kind.value,
            asset.format,
            asset.width,
            asset.height,
            result.original_size,
            result.format.value,
            result.width,
            result.height,
            result.size,
            result.compression_ratio,
        )
        return result


def resolve_output_format(plan: OperationPlan, asset: ImageAsset) -> OutputFormat:
    """
    Pick the output format: the plan's, else the source format.

    Raises:
        InvalidRequest: If the source format is decode-only and no format was requested
    """
    if plan.target_format is not None:
        return plan.target_format
    try:
        return OutputFormat(asset.format)
    except ValueError:
        raise InvalidRequest(
            f"Source format {asset.format} cannot be written; "
            f"specify one of {[f.value for f in OutputFormat]}"
        ) from None
