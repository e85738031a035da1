"""Image transformation pipeline components."""

from .encoder import Encoder, resolve_format_params
from .metrics import compression_ratio, summarize
from .orchestrator import ImagePipeline
from .plan import OperationKind, OperationPlan, build_plan
from .processor import TransformEngine
from .validator import validate

__all__ = [
    "Encoder",
    "ImagePipeline",
    "OperationKind",
    "OperationPlan",
    "TransformEngine",
    "build_plan",
    "compression_ratio",
    "resolve_format_params",
    "summarize",
    "validate",
]
