"""Continuation of truncated LLM responses and format-aware merging of the chunks."""

from .classifier import TruncationClassifier, normalize_stop_reason
from .controller import ContinuationController
from .detector import CONFIDENCE_THRESHOLD, Detection, FormatDetector
from .factory import MergerFactory, MergerSelection
from .fallback import FallbackChain, PartialResult, PartialResultBuilder
from .metadata import ContinuationMetadata, MetadataRecorder
from .models import (
    Chunk,
    Classification,
    ContinuationRequest,
    ContinuationSession,
    ControllerState,
    MergeErrorInfo,
    MergeResult,
    Provider,
    ProviderResponse,
)
from .prompts import build_continuation_prompt
from .runner import (
    ContinuationResult,
    ContinuationRunner,
    ResponseContinuationMixin,
    agenerate_with_continuation,
    generate_with_continuation,
)

__all__ = [
    "CONFIDENCE_THRESHOLD",
    "Chunk",
    "Classification",
    "ContinuationController",
    "ContinuationMetadata",
    "ContinuationRequest",
    "ContinuationResult",
    "ContinuationRunner",
    "ContinuationSession",
    "ControllerState",
    "Detection",
    "FallbackChain",
    "FormatDetector",
    "MergeErrorInfo",
    "MergeResult",
    "MergerFactory",
    "MergerSelection",
    "MetadataRecorder",
    "PartialResult",
    "PartialResultBuilder",
    "Provider",
    "ProviderResponse",
    "ResponseContinuationMixin",
    "TruncationClassifier",
    "agenerate_with_continuation",
    "build_continuation_prompt",
    "generate_with_continuation",
    "normalize_stop_reason",
]
