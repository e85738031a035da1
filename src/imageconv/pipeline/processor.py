"""Transform engine: applies an operation plan to a decoded asset."""

from dataclasses import dataclass, field
import logging
from typing import Any

from ..codec import CodecProvider
from ..codec.filters import DEFAULT_BLUR_RADIUS
from ..errors import ImageConvError, TransformError
from ..models import ImageAsset
from .plan import OperationPlan

logger = logging.getLogger(__name__)

# Resize is last so fit geometry sees the final orientation
STEP_ORDER = ("rotate", "flip", "flop", "grayscale", "blur", "sharpen", "normalize", "resize")


@dataclass(frozen=True)
class TransformStep:
    """One codec primitive call with its arguments."""

    name: str
    params: dict[str, Any] = field(default_factory=dict)


def plan_steps(plan: OperationPlan) -> list[TransformStep]:
    """
    Expand a plan into the ordered list of primitive calls.

    Args:
        plan: Normalized operation plan

    Returns:
        Steps in STEP_ORDER, skipping anything the plan does not request
    """
    steps: list[TransformStep] = []

    if plan.rotate:
        steps.append(TransformStep("rotate", {"degrees": plan.rotate}))
    if plan.flip:
        steps.append(TransformStep("flip"))
    if plan.flop:
        steps.append(TransformStep("flop"))
    if plan.grayscale:
        steps.append(TransformStep("grayscale"))
    if plan.blur:
        radius = DEFAULT_BLUR_RADIUS if plan.blur is True else float(plan.blur)
        steps.append(TransformStep("blur", {"radius": radius}))
    if plan.sharpen:
        steps.append(TransformStep("sharpen"))
    if plan.normalize:
        steps.append(TransformStep("normalize"))
    if plan.resize is not None:
        steps.append(TransformStep("resize", {"spec": plan.resize}))

    return steps


class TransformEngine:
    """
    Applies operation plans through a codec's primitives.

    Each primitive returns a new asset, so the input asset is never modified.
    """

    def __init__(self, codec: CodecProvider):
        self.codec = codec

    def apply(self, asset: ImageAsset, plan: OperationPlan) -> ImageAsset:
        """
        Run the asset through every step the plan requests.

        Args:
            asset: Decoded source asset
            plan: Normalized operation plan

        Returns:
            Transformed asset (the input asset itself if no step applies)

        Raises:
            TransformError: If any primitive fails
        """
        result = asset
        for step in plan_steps(plan):
            result = self._run_step(result, step)
            logger.debug("Applied step %s -> %dx%d", step.name, result.width, result.height)
        return result

    def _run_step(self, asset: ImageAsset, step: TransformStep) -> ImageAsset:
        primitive = getattr(self.codec, step.name)
        try:
            return primitive(asset, **step.params)
        except TransformError:
            raise
        except ImageConvError as e:
            raise TransformError(f"{step.name} failed: {e}") from e
        except Exception as e:
            logger.error("Primitive %s failed: %s", step.name, e)
            raise TransformError(f"{step.name} failed: {e}") from e
