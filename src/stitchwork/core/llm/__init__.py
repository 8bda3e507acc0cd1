"""
LLM provider, model limits and pricing — powered by LiteLLM.

The provider requires ``stitchwork[llm]`` (i.e. ``litellm``); the tables in
``config`` do not.
"""

from .config import (
    MODEL_OUTPUT_TOKEN_LIMITS,
    MODEL_PRICING,
    estimate_cost,
    get_default_model,
    get_model_max_tokens,
    get_model_pricing,
    infer_provider,
)
from .utils import extract_output_text, extract_usage, infer_stop_reason
from .client import LiteLLMProvider

__all__ = [
    "MODEL_OUTPUT_TOKEN_LIMITS",
    "MODEL_PRICING",
    "LiteLLMProvider",
    "estimate_cost",
    "extract_output_text",
    "extract_usage",
    "get_default_model",
    "get_model_max_tokens",
    "get_model_pricing",
    "infer_provider",
    "infer_stop_reason",
]
